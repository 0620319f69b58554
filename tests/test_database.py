"""
Tests for database engine, ORM models, and repository layer.

All tests use SQLite in-memory, no external database required.
"""

import pytest
from datetime import datetime
from unittest.mock import MagicMock

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError

from restroom_directory.data.database import (
    Base,
    check_connection,
    create_db_engine,
    create_session_factory,
    init_db,
)
from restroom_directory.data.models import (
    PublicBathroom,
    PublicBathroomAccessibilityFeature,
    PublicBathroomAddress,
    PublicBathroomReview,
)
from restroom_directory.data.repository import RestroomRepository, store_errors
from restroom_directory.exceptions import StoreConnectionError, StoreFailureError


# ─── Database Engine Tests ──────────────────────────────────


class TestDatabaseEngine:
    """Tests for database engine creation."""

    def test_sqlite_engine_connects(self, engine):
        """SQLite in-memory engine should connect and respond."""
        with engine.connect() as conn:
            result = conn.execute(text("SELECT 1"))
            assert result.scalar() == 1

    def test_tables_created(self, engine):
        """All ORM model tables should be created."""
        table_names = Base.metadata.tables.keys()
        expected = {
            "public_bathrooms", "public_bathroom_reviews", "public_bathroom_addresses",
            "public_bathroom_accessibility_features", "public_bathroom_categories",
            "public_bathroom_opening_hours", "public_bathroom_images",
        }
        assert expected == set(table_names)

    def test_init_db_with_explicit_engine(self, engine):
        """init_db should not fail when called on an already-initialized engine."""
        # Should be idempotent
        init_db(engine=engine)

    def test_create_engine_with_url(self):
        """create_db_engine should work with an explicit SQLite URL."""
        eng = create_db_engine("sqlite:///:memory:")
        with eng.connect() as conn:
            result = conn.execute(text("SELECT 1"))
            assert result.scalar() == 1
        eng.dispose()

    def test_in_memory_engine_shares_one_database(self):
        """Sessions from the factory must see tables created through the engine."""
        eng = create_db_engine("sqlite:///:memory:")
        init_db(eng)
        factory = create_session_factory(eng)
        with factory() as session:
            RestroomRepository(session).add_restroom("Shared", restroom_id="shared")
            session.commit()
        with factory() as session:
            assert RestroomRepository(session).restroom_exists("shared")
        eng.dispose()

    def test_file_engine_uses_wal(self, tmp_path):
        eng = create_db_engine(f"sqlite:///{tmp_path / 'wal.db'}")
        with eng.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar().lower() == "wal"
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
        eng.dispose()

    def test_unreachable_database(self, tmp_path):
        """A URL that cannot be opened should raise StoreConnectionError."""
        missing_dir = tmp_path / "does" / "not" / "exist"
        with pytest.raises(StoreConnectionError):
            create_db_engine(f"sqlite:///{missing_dir / 'x.db'}")

    def test_check_connection(self, engine):
        assert check_connection(engine) is True

    def test_check_connection_failure(self):
        broken = MagicMock()
        broken.connect.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
        assert check_connection(broken) is False


# ─── ORM Model Tests ───────────────────────────────────────


class TestPublicBathroomModel:
    """Tests for the PublicBathroom ORM model."""

    def test_defaults(self, session):
        """ID, counter and timestamps should be filled in."""
        bathroom = PublicBathroom(title="Bryant Park")
        session.add(bathroom)
        session.flush()

        result = session.get(PublicBathroom, bathroom.id)
        assert len(result.id) == 36
        assert result.poop_count == 0
        assert result.created_at is not None

    def test_repr(self):
        bathroom = PublicBathroom(id="bp", title="Bryant Park")
        assert "Bryant Park" in repr(bathroom)

    def test_relationships(self, session, seeded):
        bathroom = session.get(PublicBathroom, "downtown")
        assert len(bathroom.reviews) == 2
        assert bathroom.address_details.borough == "Manhattan"
        assert {f.feature_name for f in bathroom.accessibility_features} == {"wheelchair_accessible", "free_to_use"}

    def test_review_requires_existing_restroom(self):
        """Foreign keys are enforced on engines built by create_db_engine."""
        eng = create_db_engine("sqlite:///:memory:")
        init_db(eng)
        with create_session_factory(eng)() as session:
            session.add(PublicBathroomReview(public_bathroom_id="ghost", rating=3))
            with pytest.raises(IntegrityError):
                session.flush()
        eng.dispose()

    def test_feature_unique_per_restroom(self, session, seeded):
        session.add(PublicBathroomAccessibilityFeature(public_bathroom_id="downtown", feature_name="free_to_use"))
        with pytest.raises(IntegrityError):
            session.flush()


# ─── Repository Tests ──────────────────────────────────────


class TestRestroomRepository:
    """Tests for restroom row queries."""

    def test_fetch_restrooms_ordered_by_id(self, repo, seeded):
        rows = repo.fetch_restrooms()
        assert [r["id"] for r in rows] == ["downtown", "poconos", "unlocated", "village"]
        assert rows[0]["title"] == "Metropolitan Shopping Center"
        assert rows[0]["poop_count"] == 0

    def test_fetch_restroom(self, repo, seeded):
        assert repo.fetch_restroom("village")["latitude"] == pytest.approx(40.7309)
        assert repo.fetch_restroom("nope") is None

    def test_restroom_exists(self, repo, seeded):
        assert repo.restroom_exists("downtown") is True
        assert repo.restroom_exists("FAKE") is False

    def test_fetch_in_window(self, repo, seeded):
        rows = repo.fetch_in_window(40.70, 40.74, -74.02, -74.00)
        assert [r["id"] for r in rows] == ["downtown", "village"]

    def test_fetch_in_window_without_longitude_bounds(self, repo, seeded):
        """Only latitude is constrained; unlocated rows are never returned."""
        rows = repo.fetch_in_window(40.0, 41.5)
        assert [r["id"] for r in rows] == ["downtown", "poconos", "village"]

    def test_fetch_matching_text(self, repo, seeded):
        assert [r["id"] for r in repo.fetch_matching(text="broadway")] == ["downtown"]
        assert [r["id"] for r in repo.fetch_matching(text="BROOKLYN")] == ["unlocated"]

    def test_fetch_matching_escapes_wildcards(self, repo, session, seeded):
        repo.add_restroom("100% Clean", restroom_id="percent")
        session.commit()
        assert [r["id"] for r in repo.fetch_matching(text="100%")] == ["percent"]
        assert repo.fetch_matching(text="0%C") == []

    def test_fetch_matching_features(self, repo, seeded):
        rows = repo.fetch_matching(features={"free_to_use": True, "wheelchair_accessible": True})
        assert [r["id"] for r in rows] == ["downtown"]
        rows = repo.fetch_matching(features={"free_to_use": False})
        assert [r["id"] for r in rows] == ["poconos", "unlocated"]

    def test_fetch_matching_text_and_features(self, repo, seeded):
        rows = repo.fetch_matching(text="new york", features={"free_to_use": True})
        assert [r["id"] for r in rows] == ["downtown"]

    def test_store_errors_wraps_sqlalchemy(self):
        with pytest.raises(StoreFailureError) as exc_info:
            with store_errors("fetch_reviews"):
                raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))
        assert exc_info.value.details == {"operation": "fetch_reviews", "error": "OperationalError"}

    def test_store_errors_passes_other_exceptions(self):
        with pytest.raises(KeyError):
            with store_errors("fetch_reviews"):
                raise KeyError("not a store problem")


class TestReviewRepository:
    """Tests for review and rating queries."""

    def test_fetch_ratings(self, repo, seeded):
        pairs = repo.fetch_ratings(["downtown", "village", "poconos"])
        assert sorted(pairs) == [("downtown", 4.0), ("downtown", 5.0), ("village", 3.0)]

    def test_fetch_ratings_empty(self, repo):
        assert repo.fetch_ratings([]) == []

    def test_fetch_ratings_many_ids(self, repo, seeded):
        """More IDs than fit in one chunk."""
        ids = ["downtown"] + [f"missing-{i}" for i in range(1200)]
        assert len(repo.fetch_ratings(ids)) == 2

    def test_fetch_reviews_newest_first(self, repo, session, seeded):
        repo.add_review("village", rating=5, created_at=datetime(2025, 6, 1))
        session.commit()
        reviews = repo.fetch_reviews("village")
        assert [r["rating"] for r in reviews] == [5.0, 3.0]
        assert reviews[0]["public_bathroom_id"] == "village"


class TestDescriptiveRepository:
    """Tests for address, features, categories, hours and images."""

    def test_upsert_address_updates_in_place(self, repo, session, seeded):
        repo.upsert_address("downtown", postal_code="10007")
        session.commit()

        address = repo.get_address("downtown")
        assert address.postal_code == "10007"
        assert address.street == "233 Broadway"
        assert session.query(PublicBathroomAddress).filter_by(public_bathroom_id="downtown").count() == 1

    def test_get_address_missing(self, repo, seeded):
        assert repo.get_address("village") is None

    def test_set_feature_toggles(self, repo, session, seeded):
        repo.set_feature("village", "wheelchair_accessible", enabled=True)
        session.commit()
        features = {f.feature_name: f.enabled for f in repo.get_accessibility_features("village")}
        assert features == {"free_to_use": True, "wheelchair_accessible": True}

    def test_categories_hours_images(self, repo, session, seeded):
        repo.add_category("poconos", "Rest Stop")
        repo.add_category("poconos", "Highway")
        repo.add_opening_hour("poconos", "Mon-Sun", "24 hours")
        repo.add_image("poconos", "https://example.com/p.jpg")
        session.commit()

        assert [c.category_name for c in repo.get_categories("poconos")] == ["Highway", "Rest Stop"]
        assert repo.get_opening_hours("poconos")[0].hours_text == "24 hours"
        assert repo.get_images("poconos")[0].title is None
