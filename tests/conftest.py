"""
Shared fixtures: an in-memory SQLite store and a small restroom fixture set.

All tests use SQLite, no external database required.
"""

from datetime import datetime

import pytest
from sqlalchemy.orm import sessionmaker

from restroom_directory.data.database import create_db_engine, init_db
from restroom_directory.data.repository import RestroomRepository
from restroom_directory.engine import RestroomQueryEngine

# Lower Manhattan, used as the query origin throughout
NYC_LAT = 40.7128
NYC_LON = -74.0060


@pytest.fixture
def engine():
    """In-memory SQLite engine built the same way as the application's (pragmas, unicode lower)."""
    eng = create_db_engine("sqlite:///:memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    """Create a database session for testing, rolled back after each test."""
    sess = session_factory()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def repo(session):
    return RestroomRepository(session)


@pytest.fixture
def query_engine(repo):
    return RestroomQueryEngine(repo)


@pytest.fixture
def seeded(repo, session):
    """
    Four restrooms:

    - ``downtown``: at the origin, accessible + free, ratings 4 and 5
    - ``village``: ~2 km north, free only, rating 3
    - ``poconos``: ~90 km away at (41.0, -75.0), no reviews
    - ``unlocated``: no coordinates, accessible, rating 5
    """
    downtown = repo.add_restroom(
        "Metropolitan Shopping Center", restroom_id="downtown",
        address="233 Broadway", latitude=NYC_LAT, longitude=NYC_LON,
        description="Exceptionally clean with attendant service.", category="Shopping Center",
    )
    village = repo.add_restroom(
        "Riverside Coffee Shop", restroom_id="village",
        address="78 Hudson River Greenway", latitude=40.7309, longitude=-74.0096,
        description="Stylish bathroom, buy a coffee for the code.", category="Cafe",
    )
    poconos = repo.add_restroom(
        "Poconos Rest Stop", restroom_id="poconos",
        address="I-80 Rest Area", latitude=41.0, longitude=-75.0,
        description="Highway rest stop.", category="Rest Stop",
    )
    unlocated = repo.add_restroom(
        "Pop-up Festival Toilets", restroom_id="unlocated",
        address="Somewhere in Brooklyn", description="Clean portable units.",
    )

    repo.upsert_address("downtown", street="233 Broadway", city="New York", state="NY",
                        postal_code="10279", borough="Manhattan")
    repo.upsert_address("unlocated", city="New York", borough="Brooklyn")

    repo.set_feature("downtown", "wheelchair_accessible")
    repo.set_feature("downtown", "free_to_use")
    repo.set_feature("village", "free_to_use")
    repo.set_feature("village", "wheelchair_accessible", enabled=False)
    repo.set_feature("unlocated", "wheelchair_accessible")

    repo.add_review("downtown", rating=4, comment="Very clean", created_at=datetime(2025, 1, 1, 9, 0))
    repo.add_review("downtown", rating=5, comment="Spotless", created_at=datetime(2025, 3, 1, 9, 0))
    repo.add_review("village", rating=3, comment="Had to queue", created_at=datetime(2025, 2, 1, 9, 0))
    repo.add_review("unlocated", rating=5, comment="Surprisingly nice", created_at=datetime(2025, 2, 2, 9, 0))
    session.commit()

    return {"downtown": downtown, "village": village, "poconos": poconos, "unlocated": unlocated}
