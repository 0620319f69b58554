
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add src to path
sys.path.append(str(Path.cwd() / "src"))

from restroom_directory.config import settings
from restroom_directory.data.database import create_db_engine, create_session_factory, init_db
from restroom_directory.data.repository import RestroomRepository


# Demo listings around lower/midtown Manhattan
SEED_RESTROOMS = [
    {
        "restroom": {
            "title": "Central Park Public Restroom",
            "address": "65 Central Park West, New York, NY 10023",
            "category": "Park",
            "latitude": 40.7812,
            "longitude": -73.9665,
            "description": "Well-maintained public facility with touchless fixtures, clean stalls and regular "
                           "servicing. Accessible entrance with wide doorways.",
            "hours_description": "6AM-10PM",
            "price_range": "Free",
        },
        "address": {"street": "65 Central Park West", "city": "New York", "state": "NY",
                    "postal_code": "10023", "country": "US", "borough": "Manhattan"},
        "features": ["wheelchair_accessible", "baby_changing", "gender_neutral", "free_to_use",
                     "soap_available", "well_stocked"],
        "hours": [("Mon-Sun", "6AM-10PM")],
        "reviews": [(4, "Very clean and accessible!"), (5, "Well maintained, soap was fully stocked.")],
    },
    {
        "restroom": {
            "title": "Metropolitan Shopping Center",
            "address": "233 Broadway, New York, NY 10279",
            "category": "Shopping Center",
            "latitude": 40.7128,
            "longitude": -74.0060,
            "description": "Shopping center restrooms with attendant service, premium hand soap and individual "
                           "cloth towels. Exceptionally clean.",
            "hours_description": "9AM-9PM",
            "price_range": "Free",
        },
        "address": {"street": "233 Broadway", "city": "New York", "state": "NY",
                    "postal_code": "10279", "country": "US", "borough": "Manhattan"},
        "features": ["wheelchair_accessible", "baby_changing", "free_to_use", "changing_room",
                     "attendant_present", "family_friendly", "soap_available", "well_stocked",
                     "premium_products"],
        "hours": [("Mon-Sat", "9AM-9PM"), ("Sun", "11AM-7PM")],
        "reviews": [(5, "Luxury bathroom experience!"), (4, "Very clean, attendant was helpful.")],
    },
    {
        "restroom": {
            "title": "Riverside Coffee Shop",
            "address": "78 Hudson River Greenway, New York, NY 10014",
            "category": "Cafe",
            "latitude": 40.7309,
            "longitude": -74.0096,
            "description": "Stylish bathroom with artisanal soap and hand lotion. Clean, though you may need "
                           "to buy something to get the door code.",
            "hours_description": "7AM-8PM",
            "price_range": "$",
        },
        "address": {"street": "78 Hudson River Greenway", "city": "New York", "state": "NY",
                    "postal_code": "10014", "country": "US", "borough": "Manhattan"},
        "features": ["gender_neutral", "single_occupancy", "customer_only", "code_required",
                     "soap_available", "well_stocked", "premium_products"],
        "hours": [("Mon-Sun", "7AM-8PM")],
        "reviews": [(4, "Nice bathroom but had to buy a coffee first.")],
    },
]


def seed(database_url: str | None = None) -> int:
    """Insert the demo restrooms. Returns the number of restrooms created."""
    engine = create_db_engine(database_url)
    init_db(engine)
    session_factory = create_session_factory(engine)

    created = 0
    now = datetime.now()
    with session_factory() as session:
        repo = RestroomRepository(session)
        for entry in SEED_RESTROOMS:
            bathroom = repo.add_restroom(**entry["restroom"])
            repo.upsert_address(bathroom.id, **entry["address"])
            repo.add_category(bathroom.id, entry["restroom"]["category"])
            for name in entry["features"]:
                repo.set_feature(bathroom.id, name, enabled=True)
            for day, hours in entry["hours"]:
                repo.add_opening_hour(bathroom.id, day, hours)
            for age, (rating, comment) in enumerate(entry["reviews"]):
                repo.add_review(bathroom.id, rating=rating, comment=comment,
                                reviewer_name="admin", created_at=now - timedelta(days=age))
            created += 1
            print(f"Seeded {bathroom.title} ({bathroom.id})")
        session.commit()

    engine.dispose()
    return created


if __name__ == "__main__":
    settings.setup()
    count = seed(sys.argv[1] if len(sys.argv) > 1 else None)
    print(f"Success! Seeded {count} restrooms into {settings.database.url if len(sys.argv) < 2 else sys.argv[1]}")
