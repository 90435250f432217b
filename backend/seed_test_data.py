"""Seed a demo tenant for the supplier scoring engine.

Creates suppliers across several categories, a shared product catalog with
competing prices, purchase orders in every status, completed receivings with
inspected lines, and supplier documents with a spread of expiry dates.

Each supplier gets a behaviour profile (lateness and defect
probabilities) so that the resulting scores differ in a realistic way.

Usage:
    cd backend
    python seed_test_data.py --tenant-id 1
"""

import argparse
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from random import Random

# Ensure the backend package is importable
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from supplier_scoring.db.base import Base
from supplier_scoring.db.session import SessionLocal, engine
from supplier_scoring.models import (
    OrderStatus,
    Product,
    PurchaseOrder,
    Receiving,
    ReceivingLine,
    ReceivingStatus,
    Supplier,
    SupplierCategory,
    SupplierDocument,
    SupplierDocumentType,
    SupplierProduct,
)


@dataclass
class SeedConfig:
    seed: int = 42  # makes it reproducible
    orders_per_supplier: int = 24
    history_days: int = 200  # a bit longer than the scoring window
    lines_per_receiving: int = 4
    base_late_prob: float = 0.15
    base_defect_prob: float = 0.04
    base_price_spread: float = 0.20  # +-20% around the reference price


SUPPLIERS = [
    ("Ortofrutta Rossi", SupplierCategory.ORTOFRUTTA),
    ("Verdure Bianchi", SupplierCategory.ORTOFRUTTA),
    ("Frutta del Sud", SupplierCategory.ORTOFRUTTA),
    ("Pescheria Adriatica", SupplierCategory.ITTICO),
    ("Mare Nostrum", SupplierCategory.ITTICO),
    ("Ittica Ligure", SupplierCategory.ITTICO),
    ("Macelleria Verdi", SupplierCategory.CARNI),
    ("Caseificio Alpino", SupplierCategory.LATTICINI),
    ("Bevande Srl", SupplierCategory.BEVERAGE),
    ("Bevande Express", SupplierCategory.BEVERAGE),
    ("Magazzino Generico", None),
]

PRODUCTS = {
    SupplierCategory.ORTOFRUTTA: [("Pomodori", "2.40"), ("Zucchine", "1.90"), ("Limoni", "2.10")],
    SupplierCategory.ITTICO: [("Branzino", "14.50"), ("Gamberi", "22.00"), ("Cozze", "4.80")],
    SupplierCategory.CARNI: [("Manzo macinato", "11.00"), ("Petto di pollo", "8.20")],
    SupplierCategory.LATTICINI: [("Mozzarella", "7.60"), ("Parmigiano", "19.00")],
    SupplierCategory.BEVERAGE: [("Acqua naturale", "0.35"), ("Vino rosso", "6.50")],
}

ORDER_STATUS_WEIGHTS = [
    (OrderStatus.DRAFT, 1),
    (OrderStatus.PENDING_APPROVAL, 1),
    (OrderStatus.SENT, 1),
    (OrderStatus.CONFIRMED, 1),
    (OrderStatus.IN_DELIVERY, 1),
    (OrderStatus.RECEIVED, 8),
    (OrderStatus.CLOSED, 6),
    (OrderStatus.CANCELLED, 1),
]

RECEIVED_STATUSES = {OrderStatus.RECEIVED, OrderStatus.CLOSED, OrderStatus.PARTIALLY_RECEIVED}


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def seed(tenant_id: int, cfg: SeedConfig) -> None:
    """Insert the demo data set and commit."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        _seed_tenant(db, tenant_id, cfg)
        db.commit()
        print("Seed data committed successfully.")
    except Exception as e:
        db.rollback()
        print(f"Error seeding data: {e}")
        raise
    finally:
        db.close()


def _seed_tenant(db, tenant_id: int, cfg: SeedConfig) -> None:
    rng = Random(cfg.seed)
    now = datetime.now(timezone.utc)
    today = now.date()

    # ---------------------------------------------------------------
    # Products
    # ---------------------------------------------------------------
    products_by_category = {}
    for category, items in PRODUCTS.items():
        products_by_category[category] = []
        for name, reference_price in items:
            product = Product(tenant_id=tenant_id, name=name, unit="kg")
            db.add(product)
            products_by_category[category].append((product, Decimal(reference_price)))
    db.flush()

    # ---------------------------------------------------------------
    # Suppliers, catalog and documents
    # ---------------------------------------------------------------
    for business_name, category in SUPPLIERS:
        supplier = Supplier(tenant_id=tenant_id, business_name=business_name, category=category)
        db.add(supplier)
        db.flush()

        # A worse "quality" profile makes everything slightly worse
        quality = rng.random()
        late_prob = clamp(cfg.base_late_prob + 0.35 * quality, 0.02, 0.70)
        defect_prob = clamp(cfg.base_defect_prob + 0.15 * quality, 0.01, 0.30)
        price_bias = rng.uniform(-cfg.base_price_spread, cfg.base_price_spread)

        catalog = products_by_category.get(category, [])
        for product, reference_price in catalog:
            factor = Decimal(str(round(1 + price_bias + rng.uniform(-0.05, 0.05), 4)))
            db.add(SupplierProduct(
                supplier_id=supplier.id,
                product_id=product.id,
                current_price=(reference_price * factor).quantize(Decimal("0.0001")),
                is_active=True,
            ))

        for document_type in (SupplierDocumentType.HACCP, SupplierDocumentType.DURC):
            db.add(SupplierDocument(
                supplier_id=supplier.id,
                document_type=document_type,
                file_name=f"{document_type.value}_{supplier.id}.pdf",
                expiry_date=today + timedelta(days=rng.randint(-10, 365)),
            ))

        # -----------------------------------------------------------
        # Orders and receivings
        # -----------------------------------------------------------
        statuses = [s for s, _ in ORDER_STATUS_WEIGHTS]
        weights = [w for _, w in ORDER_STATUS_WEIGHTS]
        for n in range(cfg.orders_per_supplier):
            created_at = now - timedelta(days=rng.randint(0, cfg.history_days))
            status = rng.choices(statuses, weights=weights)[0]
            expected = (created_at + timedelta(days=rng.randint(1, 5))).date()
            order = PurchaseOrder(
                tenant_id=tenant_id,
                supplier_id=supplier.id,
                order_number=f"PO-{supplier.id:03d}-{n:04d}",
                status=status,
                # Some legacy orders were created without an expected date
                expected_delivery_date=expected if rng.random() > 0.1 else None,
                created_at=created_at,
            )
            db.add(order)
            db.flush()

            if status not in RECEIVED_STATUSES:
                continue

            if rng.random() < late_prob:
                delay = timedelta(days=rng.randint(2, 7))
            else:
                delay = timedelta(hours=rng.randint(0, 30))
            received_at = datetime.combine(expected, datetime.min.time(), tzinfo=timezone.utc) + delay
            receiving = Receiving(
                tenant_id=tenant_id,
                order_id=order.id,
                supplier_id=supplier.id,
                received_at=min(received_at, now),
                status=ReceivingStatus.COMPLETED,
            )
            db.add(receiving)
            db.flush()

            for product, _ in catalog[: cfg.lines_per_receiving]:
                qty = Decimal(rng.randint(5, 50))
                db.add(ReceivingLine(
                    receiving_id=receiving.id,
                    product_id=product.id,
                    quantity_ordered=qty,
                    quantity_received=qty,
                    is_conforming=rng.random() >= defect_prob,
                ))

    print(f"Seeded {len(SUPPLIERS)} suppliers for tenant {tenant_id}.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo data for the scoring engine")
    parser.add_argument("--tenant-id", type=int, default=1)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()
    seed(args.tenant_id, SeedConfig(seed=args.seed))


if __name__ == "__main__":
    main()
