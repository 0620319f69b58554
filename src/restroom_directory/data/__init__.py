"""Data layer: database engine, ORM models, records, validation, aggregation and repository."""

from restroom_directory.data.database import Base, create_db_engine, create_session_factory, init_db
from restroom_directory.data.models import (
    PublicBathroom, PublicBathroomReview, PublicBathroomAddress,
    PublicBathroomAccessibilityFeature, PublicBathroomCategory,
    PublicBathroomOpeningHour, PublicBathroomImage,
)
from restroom_directory.data.records import Restroom, RestroomWithRating, Review
from restroom_directory.data.criteria import FilterCriteria, SearchCriteria
from restroom_directory.data.counters import CounterStore
from restroom_directory.data.repository import RestroomRepository

__all__ = [
    "Base", "create_db_engine", "create_session_factory", "init_db",
    "PublicBathroom", "PublicBathroomReview", "PublicBathroomAddress",
    "PublicBathroomAccessibilityFeature", "PublicBathroomCategory",
    "PublicBathroomOpeningHour", "PublicBathroomImage",
    "Restroom", "RestroomWithRating", "Review",
    "FilterCriteria", "SearchCriteria",
    "CounterStore", "RestroomRepository",
]
