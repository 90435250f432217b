"""Tests for the supplier ranking."""

from sqlalchemy.orm import Session

from conftest import OTHER_TENANT_ID, TENANT_ID
from supplier_scoring.models import SupplierCategory
from supplier_scoring.schemas.scoring import RankingSortKey
from supplier_scoring.services.supplier_ranking_service import build_ranking


class TestBuildRanking:
    """Tests for build_ranking."""

    def test_best_first_with_unscored_last(self, db_session: Session, factory):
        fair = factory.supplier("Fair")
        best = factory.supplier("Best")
        unscored = factory.supplier("Unscored")
        tied = factory.supplier("Tied with fair")
        factory.score(fair, 70.0)
        factory.score(best, 90.0)
        factory.score(tied, 70.0)

        ranking = build_ranking(db_session, TENANT_ID)

        assert [e.supplier_id for e in ranking] == [best.id, fair.id, tied.id, unscored.id]
        assert [e.rank for e in ranking] == [1, 2, 3, 4]

    def test_unscored_row_is_all_null(self, db_session: Session, factory):
        supplier = factory.supplier("Fresh")
        db_session.commit()

        (entry,) = build_ranking(db_session, TENANT_ID)

        assert entry.business_name == "Fresh"
        assert entry.category == SupplierCategory.ORTOFRUTTA
        assert entry.composite_score is None
        assert entry.punctuality is None
        assert entry.conformity is None
        assert entry.price_competitiveness is None
        assert entry.reliability is None
        assert entry.calculated_at is None

    def test_scored_row_carries_dimension_scores(self, db_session: Session, factory, now):
        supplier = factory.supplier()
        factory.score(supplier, 75.0, punctuality=80.0, reliability=60.0)

        (entry,) = build_ranking(db_session, TENANT_ID)

        assert entry.composite_score == 75.0
        assert entry.punctuality == 80.0
        assert entry.conformity is None
        assert entry.reliability == 60.0
        assert entry.calculated_at == now

    def test_sort_by_dimension(self, db_session: Session, factory):
        a = factory.supplier("A")
        b = factory.supplier("B")
        c = factory.supplier("C")
        factory.score(a, 90.0, punctuality=50.0)
        factory.score(b, 60.0, punctuality=95.0)
        factory.score(c, 99.0)

        ranking = build_ranking(db_session, TENANT_ID, sort_by=RankingSortKey.PUNCTUALITY)

        assert [e.supplier_id for e in ranking] == [b.id, a.id, c.id]

    def test_category_filter(self, db_session: Session, factory):
        factory.supplier("Veg", category=SupplierCategory.ORTOFRUTTA)
        fish = factory.supplier("Fish", category=SupplierCategory.ITTICO)
        db_session.commit()

        ranking = build_ranking(db_session, TENANT_ID, category=SupplierCategory.ITTICO)

        assert [e.supplier_id for e in ranking] == [fish.id]
        assert ranking[0].rank == 1

    def test_excludes_deleted_and_foreign_suppliers(self, db_session: Session, factory):
        active = factory.supplier("Active")
        factory.supplier("Deleted", is_deleted=True)
        foreign = factory.supplier("Foreign", tenant_id=OTHER_TENANT_ID)
        factory.score(foreign, 99.0)

        ranking = build_ranking(db_session, TENANT_ID)

        assert [e.supplier_id for e in ranking] == [active.id]

    def test_empty_tenant(self, db_session: Session):
        assert build_ranking(db_session, TENANT_ID) == []
