"""
Repository layer: store access for restrooms and their related rows.

The repository only builds and runs SQL: text, feature and bounding-box
predicates are pushed to the database, and rows come back as plain
mappings. Aggregation, validation and distance ranking happen in the
query engine on top of these rows.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional, Sequence

from sqlalchemy import Select, and_, exists, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from restroom_directory.data.models import (
    PublicBathroom,
    PublicBathroomReview,
    PublicBathroomAddress,
    PublicBathroomAccessibilityFeature,
    PublicBathroomCategory,
    PublicBathroomOpeningHour,
    PublicBathroomImage,
)
from restroom_directory.exceptions import StoreFailureError
from restroom_directory.logging_config import get_logger

logger = get_logger(__name__)

# Columns surfaced on every restroom record
RESTROOM_COLUMNS = (
    PublicBathroom.id,
    PublicBathroom.title,
    PublicBathroom.address,
    PublicBathroom.category,
    PublicBathroom.description,
    PublicBathroom.latitude,
    PublicBathroom.longitude,
    PublicBathroom.website,
    PublicBathroom.hours_description,
    PublicBathroom.price_range,
    PublicBathroom.thumbnail,
    PublicBathroom.created_at,
    PublicBathroom.poop_count,
)


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate driver/ORM errors into StoreFailureError, logged with context."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.exception("Store failure during %s", operation)
        raise StoreFailureError(
            message=f"Store failure during {operation}",
            details={"operation": operation, "error": type(e).__name__},
        ) from e


def _contains(column, text: str):
    """Case-insensitive substring match with LIKE wildcards escaped."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


def _feature_enabled(feature_name: str):
    return exists().where(
        PublicBathroomAccessibilityFeature.public_bathroom_id == PublicBathroom.id,
        PublicBathroomAccessibilityFeature.feature_name == feature_name,
        PublicBathroomAccessibilityFeature.enabled.is_(True),
    )


class RestroomRepository:
    """
    Read queries and seed writes for restroom data.

    Usage:
        session_factory = create_session_factory()
        with session_factory() as session:
            repo = RestroomRepository(session)
            rows = repo.fetch_restrooms()
    """

    def __init__(self, session: Session):
        self.session = session

    # --- Restroom rows ---

    def _base_query(self) -> Select:
        return select(*RESTROOM_COLUMNS)

    def _rows(self, stmt: Select, operation: str) -> list[dict[str, Any]]:
        with store_errors(operation):
            result = self.session.execute(stmt.order_by(PublicBathroom.id))
            return [dict(row._mapping) for row in result]

    def fetch_restrooms(self) -> list[dict[str, Any]]:
        """All restroom rows, ordered by ID."""
        return self._rows(self._base_query(), "fetch_restrooms")

    def fetch_restroom(self, restroom_id: str) -> Optional[dict[str, Any]]:
        """One restroom row, or None if not found."""
        rows = self._rows(self._base_query().where(PublicBathroom.id == restroom_id), "fetch_restroom")
        return rows[0] if rows else None

    def restroom_exists(self, restroom_id: str) -> bool:
        with store_errors("restroom_exists"):
            return self.session.scalar(
                select(func.count()).select_from(PublicBathroom).where(PublicBathroom.id == restroom_id)
            ) > 0

    def fetch_in_window(
        self,
        min_lat: float,
        max_lat: float,
        min_lon: Optional[float] = None,
        max_lon: Optional[float] = None,
    ) -> list[dict[str, Any]]:
        """Located restrooms inside a latitude/longitude window."""
        stmt = self._base_query().where(
            PublicBathroom.latitude.is_not(None),
            PublicBathroom.longitude.is_not(None),
            PublicBathroom.latitude.between(min_lat, max_lat),
        )
        if min_lon is not None and max_lon is not None:
            stmt = stmt.where(PublicBathroom.longitude.between(min_lon, max_lon))
        return self._rows(stmt, "fetch_in_window")

    def fetch_matching(
        self,
        text: Optional[str] = None,
        features: Optional[dict[str, bool]] = None,
    ) -> list[dict[str, Any]]:
        """
        Restroom rows matching a free-text query and feature predicates.

        Text matches title, address, description and the structured address
        components. A feature set to True requires an enabled feature row;
        False requires that there is none.
        """
        stmt = self._base_query()

        if text:
            stmt = stmt.outerjoin(
                PublicBathroomAddress,
                PublicBathroomAddress.public_bathroom_id == PublicBathroom.id,
            ).where(
                or_(
                    _contains(PublicBathroom.title, text),
                    _contains(PublicBathroom.address, text),
                    _contains(PublicBathroom.description, text),
                    _contains(PublicBathroomAddress.street, text),
                    _contains(PublicBathroomAddress.city, text),
                    _contains(PublicBathroomAddress.state, text),
                    _contains(PublicBathroomAddress.postal_code, text),
                    _contains(PublicBathroomAddress.borough, text),
                )
            )

        for name, wanted in (features or {}).items():
            predicate = _feature_enabled(name)
            stmt = stmt.where(predicate if wanted else ~predicate)

        return self._rows(stmt, "fetch_matching")

    # --- Reviews ---

    def fetch_ratings(self, restroom_ids: Sequence[str]) -> list[tuple[str, Any]]:
        """``(restroom_id, rating)`` pairs for the given restrooms."""
        if not restroom_ids:
            return []
        pairs: list[tuple[str, Any]] = []
        with store_errors("fetch_ratings"):
            # Chunked to stay under driver bind-parameter limits
            for start in range(0, len(restroom_ids), 500):
                chunk = list(restroom_ids[start:start + 500])
                stmt = select(PublicBathroomReview.public_bathroom_id, PublicBathroomReview.rating).where(
                    PublicBathroomReview.public_bathroom_id.in_(chunk)
                )
                pairs.extend((row[0], row[1]) for row in self.session.execute(stmt))
        return pairs

    def fetch_reviews(self, restroom_id: str) -> list[dict[str, Any]]:
        """Review rows for a restroom, newest first."""
        stmt = (
            select(
                PublicBathroomReview.id,
                PublicBathroomReview.public_bathroom_id,
                PublicBathroomReview.rating,
                PublicBathroomReview.comment,
                PublicBathroomReview.reviewer_name,
                PublicBathroomReview.created_at,
            )
            .where(PublicBathroomReview.public_bathroom_id == restroom_id)
            .order_by(PublicBathroomReview.created_at.desc(), PublicBathroomReview.id.desc())
        )
        with store_errors("fetch_reviews"):
            return [dict(row._mapping) for row in self.session.execute(stmt)]

    # --- Descriptive side tables ---

    def get_address(self, restroom_id: str) -> Optional[PublicBathroomAddress]:
        with store_errors("get_address"):
            return self.session.execute(
                select(PublicBathroomAddress).where(PublicBathroomAddress.public_bathroom_id == restroom_id)
            ).scalar_one_or_none()

    def _children(self, model_class, restroom_id: str, order_by) -> list[Any]:
        stmt = select(model_class).where(model_class.public_bathroom_id == restroom_id).order_by(order_by)
        with store_errors(f"list {model_class.__tablename__}"):
            return list(self.session.scalars(stmt))

    def get_accessibility_features(self, restroom_id: str) -> list[PublicBathroomAccessibilityFeature]:
        return self._children(PublicBathroomAccessibilityFeature, restroom_id, PublicBathroomAccessibilityFeature.feature_name)

    def get_categories(self, restroom_id: str) -> list[PublicBathroomCategory]:
        return self._children(PublicBathroomCategory, restroom_id, PublicBathroomCategory.category_name)

    def get_opening_hours(self, restroom_id: str) -> list[PublicBathroomOpeningHour]:
        return self._children(PublicBathroomOpeningHour, restroom_id, PublicBathroomOpeningHour.created_at)

    def get_images(self, restroom_id: str) -> list[PublicBathroomImage]:
        return self._children(PublicBathroomImage, restroom_id, PublicBathroomImage.created_at)

    # --- Seed / import writes ---

    def add_restroom(self, title: str, restroom_id: str | None = None, **kwargs) -> PublicBathroom:
        """Insert a restroom. Extra kwargs are PublicBathroom columns."""
        bathroom = PublicBathroom(title=title, **kwargs)
        if restroom_id is not None:
            bathroom.id = restroom_id
        self.session.add(bathroom)
        self.session.flush()
        return bathroom

    def add_review(
        self,
        restroom_id: str,
        rating: float | None = None,
        comment: str | None = None,
        reviewer_name: str | None = None,
        created_at: datetime | None = None,
    ) -> PublicBathroomReview:
        review = PublicBathroomReview(
            public_bathroom_id=restroom_id,
            rating=rating,
            comment=comment,
            reviewer_name=reviewer_name,
        )
        if created_at is not None:
            review.created_at = created_at
        self.session.add(review)
        self.session.flush()
        return review

    def upsert_address(self, restroom_id: str, **kwargs) -> PublicBathroomAddress:
        """Insert or update the structured address for a restroom."""
        existing = self.get_address(restroom_id)
        if existing:
            for key, value in kwargs.items():
                if hasattr(existing, key) and value is not None:
                    setattr(existing, key, value)
            self.session.flush()
            return existing

        address = PublicBathroomAddress(public_bathroom_id=restroom_id, **kwargs)
        self.session.add(address)
        self.session.flush()
        return address

    def set_feature(self, restroom_id: str, feature_name: str, enabled: bool = True) -> PublicBathroomAccessibilityFeature:
        """Insert or update one named feature flag."""
        existing = self.session.execute(
            select(PublicBathroomAccessibilityFeature).where(
                and_(
                    PublicBathroomAccessibilityFeature.public_bathroom_id == restroom_id,
                    PublicBathroomAccessibilityFeature.feature_name == feature_name,
                )
            )
        ).scalar_one_or_none()
        if existing:
            existing.enabled = enabled
            self.session.flush()
            return existing

        feature = PublicBathroomAccessibilityFeature(
            public_bathroom_id=restroom_id, feature_name=feature_name, enabled=enabled
        )
        self.session.add(feature)
        self.session.flush()
        return feature

    def add_category(self, restroom_id: str, category_name: str) -> PublicBathroomCategory:
        category = PublicBathroomCategory(public_bathroom_id=restroom_id, category_name=category_name)
        self.session.add(category)
        self.session.flush()
        return category

    def add_opening_hour(self, restroom_id: str, day_of_week: str, hours_text: str) -> PublicBathroomOpeningHour:
        hour = PublicBathroomOpeningHour(public_bathroom_id=restroom_id, day_of_week=day_of_week, hours_text=hours_text)
        self.session.add(hour)
        self.session.flush()
        return hour

    def add_image(self, restroom_id: str, image_url: str, title: str | None = None) -> PublicBathroomImage:
        image = PublicBathroomImage(public_bathroom_id=restroom_id, image_url=image_url, title=title)
        self.session.add(image)
        self.session.flush()
        return image
