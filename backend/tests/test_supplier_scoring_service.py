"""Tests for the supplier scoring service."""

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from conftest import NOW, OTHER_TENANT_ID, TENANT_ID, ScoringFactory
from supplier_scoring.core.exceptions import SupplierNotFoundError
from supplier_scoring.db.base import Base
from supplier_scoring.models import Supplier, SupplierCategory
from supplier_scoring.schemas.scoring import RiskLevel
from supplier_scoring.services import supplier_scoring_service
from supplier_scoring.services.supplier_scoring_service import ScoringConfig, SupplierScoringService

EXPECTED = date(2025, 5, 26)
ON_TIME = datetime(2025, 5, 26, 10, 0, tzinfo=timezone.utc)
LATE = datetime(2025, 5, 29, 10, 0, tzinfo=timezone.utc)


def _add_history(factory: ScoringFactory, supplier: Supplier) -> None:
    """Eight on-time and two late deliveries, one conforming line each."""
    for _ in range(8):
        factory.delivery(supplier, ON_TIME, expected=EXPECTED, lines=[True])
    for _ in range(2):
        factory.delivery(supplier, LATE, expected=EXPECTED, lines=[True])


class TestCalculateScore:
    """Tests for calculate_score."""

    def test_scores_and_persists(self, db_session: Session, factory, scoring_config):
        supplier = factory.supplier()
        _add_history(factory, supplier)
        db_session.commit()
        service = SupplierScoringService(db_session, scoring_config)

        snapshot = service.calculate_score(supplier.id, TENANT_ID)

        assert snapshot.supplier_id == supplier.id
        assert snapshot.punctuality.score == 80.0
        assert snapshot.punctuality.sample_size == 10
        assert snapshot.conformity.score == 100.0
        assert snapshot.reliability.score == 100.0
        assert snapshot.price_competitiveness.score is None
        # (80*30 + 100*30 + 100*15) / 75
        assert snapshot.composite_score == 92.0
        assert snapshot.calculated_at == NOW
        assert service.get_score(supplier.id, TENANT_ID) == snapshot

    def test_is_idempotent(self, db_session: Session, factory, scoring_config):
        supplier = factory.supplier()
        _add_history(factory, supplier)
        db_session.commit()
        service = SupplierScoringService(db_session, scoring_config)

        first = service.calculate_score(supplier.id, TENANT_ID)
        version = supplier.version
        second = service.calculate_score(supplier.id, TENANT_ID)

        assert first == second
        assert supplier.version == version + 1

    def test_supplier_without_history(self, db_session: Session, factory, scoring_config):
        supplier = factory.supplier()
        db_session.commit()

        snapshot = SupplierScoringService(db_session, scoring_config).calculate_score(
            supplier.id, TENANT_ID
        )

        assert snapshot.composite_score is None
        assert all(r.sample_size == 0 for r in snapshot.dimensions().values())

    def test_unknown_deleted_or_foreign_supplier(self, db_session: Session, factory, scoring_config):
        deleted = factory.supplier("Deleted", is_deleted=True)
        foreign = factory.supplier("Foreign", tenant_id=OTHER_TENANT_ID)
        db_session.commit()
        service = SupplierScoringService(db_session, scoring_config)

        for supplier_id in (999, deleted.id, foreign.id):
            with pytest.raises(SupplierNotFoundError):
                service.calculate_score(supplier_id, TENANT_ID)

    def test_data_source_failure_writes_nothing(
        self, db_session: Session, factory, scoring_config, monkeypatch
    ):
        supplier = factory.supplier()
        factory.score(supplier, 55.0)

        def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        monkeypatch.setattr(supplier_scoring_service, "calculate_dimensions", broken)
        service = SupplierScoringService(db_session, scoring_config)

        with pytest.raises(OperationalError):
            service.calculate_score(supplier.id, TENANT_ID)
        assert service.get_score(supplier.id, TENANT_ID).composite_score == 55.0


class TestRecalculateAll:
    """Tests for recalculate_all."""

    def test_recalculates_every_active_supplier(self, db_session: Session, factory, scoring_config):
        first = factory.supplier("First")
        second = factory.supplier("Second")
        factory.supplier("Deleted", is_deleted=True)
        factory.supplier("Foreign", tenant_id=OTHER_TENANT_ID)
        _add_history(factory, first)
        db_session.commit()

        result = SupplierScoringService(db_session, scoring_config).recalculate_all(TENANT_ID)

        assert result.suppliers_processed == 2
        assert [s.supplier_id for s in result.results] == [first.id, second.id]
        assert result.results[0].composite_score == 92.0
        assert result.results[1].composite_score is None
        assert result.failed == []
        assert all(s.calculated_at == NOW for s in result.results)

    def test_empty_tenant(self, db_session: Session, scoring_config):
        result = SupplierScoringService(db_session, scoring_config).recalculate_all(TENANT_ID)

        assert result.suppliers_processed == 0
        assert result.results == []

    def test_failure_is_isolated(self, db_session: Session, factory, scoring_config, monkeypatch):
        healthy = factory.supplier("Healthy")
        broken_supplier = factory.supplier("Broken")
        _add_history(factory, healthy)
        db_session.commit()
        factory.score(broken_supplier, 61.0)

        original = supplier_scoring_service.calculate_dimensions

        def flaky(db, supplier_id, tenant_id, window):
            if supplier_id == broken_supplier.id:
                raise OperationalError("SELECT", {}, Exception("timeout"))
            return original(db, supplier_id, tenant_id, window)

        monkeypatch.setattr(supplier_scoring_service, "calculate_dimensions", flaky)
        service = SupplierScoringService(db_session, scoring_config)

        result = service.recalculate_all(TENANT_ID)

        assert result.suppliers_processed == 1
        assert [s.supplier_id for s in result.results] == [healthy.id]
        assert [f.supplier_id for f in result.failed] == [broken_supplier.id]
        # The failed supplier keeps its previous snapshot
        assert service.get_score(broken_supplier.id, TENANT_ID).composite_score == 61.0
        assert service.get_score(healthy.id, TENANT_ID).composite_score == 92.0

    def test_parallel_workers(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'scoring.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(bind=engine)
        factory_session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        db = factory_session()
        try:
            data = ScoringFactory(db)
            suppliers = [data.supplier(f"Supplier {n}") for n in range(4)]
            _add_history(data, suppliers[0])
            db.commit()
            supplier_ids = [s.id for s in suppliers]

            config = ScoringConfig(max_workers=3, clock=lambda: NOW)
            service = SupplierScoringService(db, config, session_factory=factory_session)
            result = service.recalculate_all(TENANT_ID)

            assert result.failed == []
            assert [s.supplier_id for s in result.results] == supplier_ids
            db.expire_all()
            assert service.get_score(supplier_ids[0], TENANT_ID).composite_score == 92.0
        finally:
            db.close()
            engine.dispose()


class TestReadProjections:
    """Tests for get_score, get_ranking and get_risk_map."""

    def test_get_score_of_never_scored_supplier(self, db_session: Session, factory, scoring_config):
        supplier = factory.supplier()
        db_session.commit()

        snapshot = SupplierScoringService(db_session, scoring_config).get_score(supplier.id)

        assert snapshot.composite_score is None
        assert snapshot.calculated_at == NOW
        assert db_session.get(Supplier, supplier.id).score_data is None

    def test_get_score_scoped_to_tenant(self, db_session: Session, factory, scoring_config):
        supplier = factory.supplier(tenant_id=OTHER_TENANT_ID)
        db_session.commit()

        with pytest.raises(SupplierNotFoundError):
            SupplierScoringService(db_session, scoring_config).get_score(supplier.id, TENANT_ID)

    def test_ranking_and_risk_map_read_stored_scores(
        self, db_session: Session, factory, scoring_config
    ):
        scored = factory.supplier("Scored", category=SupplierCategory.ITTICO)
        factory.supplier("Unscored", category=SupplierCategory.ITTICO)
        _add_history(factory, scored)
        db_session.commit()
        service = SupplierScoringService(db_session, scoring_config)

        # Projections never trigger a calculation
        assert all(e.composite_score is None for e in service.get_ranking(TENANT_ID))

        service.recalculate_all(TENANT_ID)
        ranking = service.get_ranking(TENANT_ID)
        (risk,) = service.get_risk_map(TENANT_ID)

        assert [e.business_name for e in ranking] == ["Scored", "Unscored"]
        assert ranking[0].composite_score == 92.0
        assert risk.category == "ittico"
        assert risk.average_score == 92.0
        assert risk.risk_level == RiskLevel.LOW

    def test_risk_map_uses_configured_expiry_window(self, db_session: Session, factory):
        supplier = factory.supplier(category=SupplierCategory.CARNI)
        factory.document(supplier, NOW.date() + timedelta(days=45))
        db_session.commit()

        narrow = ScoringConfig(document_expiry_window_days=30, clock=lambda: NOW)
        wide = ScoringConfig(document_expiry_window_days=60, clock=lambda: NOW)

        (narrow_risk,) = SupplierScoringService(db_session, narrow).get_risk_map(TENANT_ID)
        (wide_risk,) = SupplierScoringService(db_session, wide).get_risk_map(TENANT_ID)

        assert narrow_risk.expiring_documents == 0
        assert wide_risk.expiring_documents == 1
