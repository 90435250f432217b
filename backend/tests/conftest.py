"""Pytest configuration and fixtures."""

import os

# Keep the application engine off the on-disk database during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Generator, Iterable, Optional

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from supplier_scoring.core.rate_limit import limiter
from supplier_scoring.db.base import Base
from supplier_scoring.db.session import get_db
from supplier_scoring.main import app
# Import all models to ensure they're registered with Base.metadata
from supplier_scoring.models import *
from supplier_scoring.schemas.scoring import (
    DIMENSION_WEIGHTS,
    DimensionResult,
    ScoreDimension,
    ScoreSnapshot,
)
from supplier_scoring.services.score_snapshot_store import ScoreSnapshotStore
from supplier_scoring.services.supplier_scoring_service import ScoringConfig

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

TENANT_ID = 1
OTHER_TENANT_ID = 2

# Fixed reference time; the lookback window starts on 2024-12-15 12:00 UTC
NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory bound to the test engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # Disable rate limiter during tests to avoid flaky failures
    limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture
def tenant_headers() -> dict:
    """Headers scoping a request to the test tenant."""
    return {"X-Tenant-ID": str(TENANT_ID)}


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def scoring_config() -> ScoringConfig:
    """Scoring configuration pinned to the fixed reference time."""
    return ScoringConfig(
        lookback_months=6,
        grace_period_days=1,
        document_expiry_window_days=30,
        max_workers=1,
        clock=lambda: NOW,
    )


def dimension_result(dimension: ScoreDimension, score: Optional[float]) -> DimensionResult:
    """Dimension result with a plausible sample size for the given score."""
    if score is None:
        return DimensionResult.empty(dimension)
    return DimensionResult(score=score, weight=DIMENSION_WEIGHTS[dimension], sample_size=10)


class ScoringFactory:
    """Builds suppliers and the source facts they are scored on."""

    def __init__(self, db: Session):
        self.db = db
        self._order_seq = 0

    def supplier(
        self,
        business_name: str = "Test Supplier",
        category: Optional[SupplierCategory] = SupplierCategory.ORTOFRUTTA,
        tenant_id: int = TENANT_ID,
        is_deleted: bool = False,
    ) -> Supplier:
        supplier = Supplier(
            tenant_id=tenant_id,
            business_name=business_name,
            category=category,
            is_deleted=is_deleted,
        )
        self.db.add(supplier)
        self.db.flush()
        return supplier

    def product(self, name: str = "Pomodori", tenant_id: int = TENANT_ID) -> Product:
        product = Product(tenant_id=tenant_id, name=name, unit="kg")
        self.db.add(product)
        self.db.flush()
        return product

    def offer(
        self, supplier: Supplier, product: Product, price: str, is_active: bool = True
    ) -> SupplierProduct:
        offer = SupplierProduct(
            supplier_id=supplier.id,
            product_id=product.id,
            current_price=Decimal(price),
            is_active=is_active,
        )
        self.db.add(offer)
        self.db.flush()
        return offer

    def order(
        self,
        supplier: Supplier,
        status: OrderStatus = OrderStatus.RECEIVED,
        expected: Optional[date] = None,
        created_at: Optional[datetime] = None,
    ) -> PurchaseOrder:
        self._order_seq += 1
        order = PurchaseOrder(
            tenant_id=supplier.tenant_id,
            supplier_id=supplier.id,
            order_number=f"PO-{self._order_seq:04d}",
            status=status,
            expected_delivery_date=expected,
            created_at=created_at or NOW - timedelta(days=30),
        )
        self.db.add(order)
        self.db.flush()
        return order

    def delivery(
        self,
        supplier: Supplier,
        received_at: datetime,
        expected: Optional[date] = None,
        lines: Iterable[bool] = (),
        status: ReceivingStatus = ReceivingStatus.COMPLETED,
    ) -> Receiving:
        """An order plus its receiving; ``lines`` are the conformity flags."""
        order = self.order(supplier, status=OrderStatus.RECEIVED, expected=expected)
        receiving = Receiving(
            tenant_id=supplier.tenant_id,
            order_id=order.id,
            supplier_id=supplier.id,
            received_at=received_at,
            status=status,
        )
        self.db.add(receiving)
        self.db.flush()
        product = None
        for is_conforming in lines:
            if product is None:
                product = self.product(name=f"Line product {receiving.id}", tenant_id=supplier.tenant_id)
            self.db.add(ReceivingLine(
                receiving_id=receiving.id,
                product_id=product.id,
                quantity_ordered=Decimal("10"),
                quantity_received=Decimal("10"),
                is_conforming=is_conforming,
            ))
        self.db.flush()
        return receiving

    def document(
        self,
        supplier: Supplier,
        expiry_date: Optional[date],
        document_type: SupplierDocumentType = SupplierDocumentType.HACCP,
    ) -> SupplierDocument:
        document = SupplierDocument(
            supplier_id=supplier.id,
            document_type=document_type,
            file_name=f"{document_type.value}.pdf",
            expiry_date=expiry_date,
        )
        self.db.add(document)
        self.db.flush()
        return document

    def score(
        self,
        supplier: Supplier,
        composite: Optional[float],
        calculated_at: datetime = NOW,
        **dimension_scores: Optional[float],
    ) -> ScoreSnapshot:
        """Store a snapshot directly, bypassing the calculators."""
        snapshot = ScoreSnapshot(
            supplier_id=supplier.id,
            composite_score=composite,
            calculated_at=calculated_at,
            **{
                d.value: dimension_result(d, dimension_scores.get(d.value))
                for d in ScoreDimension
            },
        )
        ScoreSnapshotStore(self.db).write(supplier.id, snapshot)
        self.db.commit()
        return snapshot


@pytest.fixture
def factory(db_session: Session) -> ScoringFactory:
    return ScoringFactory(db_session)
