"""Persistence of supplier score snapshots.

A snapshot lives in the single ``suppliers.score_data`` JSON column. Writes
replace the whole document in one UPDATE, so a reader sees either the previous
snapshot or the new one, never a mix of both.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from supplier_scoring.core.exceptions import SupplierNotFoundError
from supplier_scoring.models.supplier import Supplier
from supplier_scoring.schemas.scoring import DimensionResult, ScoreDimension, ScoreSnapshot

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def default_snapshot(supplier_id: int, calculated_at: datetime) -> ScoreSnapshot:
    """All-null snapshot for a supplier that was never scored."""
    return ScoreSnapshot(
        supplier_id=supplier_id,
        composite_score=None,
        calculated_at=calculated_at,
        **{d.value: DimensionResult.empty(d) for d in ScoreDimension},
    )


class ScoreSnapshotStore:
    """Reads and replaces the snapshot attached to a supplier."""

    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.clock = clock or _utc_now

    def _get_supplier(self, supplier_id: int) -> Supplier:
        supplier = self.db.query(Supplier).filter(Supplier.id == supplier_id).first()
        if supplier is None:
            raise SupplierNotFoundError(supplier_id)
        return supplier

    def write(self, supplier_id: int, snapshot: ScoreSnapshot) -> None:
        """Replace the supplier's snapshot. The caller owns the transaction."""
        if snapshot.supplier_id != supplier_id:
            raise ValueError(
                f"Snapshot belongs to supplier {snapshot.supplier_id}, not {supplier_id}"
            )
        supplier = self._get_supplier(supplier_id)
        supplier.score_data = snapshot.model_dump(mode="json")
        supplier.increment_version()
        self.db.flush()
        logger.debug(f"Stored score snapshot v{supplier.version} for supplier {supplier_id}")

    def stored(self, supplier: Supplier) -> Optional[ScoreSnapshot]:
        """The persisted snapshot of a loaded supplier, if any."""
        if not supplier.score_data:
            return None
        return ScoreSnapshot.model_validate(supplier.score_data)

    def read_supplier(self, supplier: Supplier) -> ScoreSnapshot:
        """The persisted snapshot, or a synthesized default that is not saved."""
        snapshot = self.stored(supplier)
        if snapshot is None:
            return default_snapshot(supplier.id, self.clock())
        return snapshot

    def read(self, supplier_id: int) -> ScoreSnapshot:
        return self.read_supplier(self._get_supplier(supplier_id))
