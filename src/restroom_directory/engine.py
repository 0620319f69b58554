"""
Restroom query engine.

Turns store rows into validated ``RestroomWithRating`` records:

1. the repository runs the SQL predicates (text, features, bounding box)
2. review ratings for the candidate rows are aggregated on read
3. each aggregated row is validated; malformed rows are dropped and logged
4. rating thresholds, distance, radius, ordering and limits are applied

The engine holds no state beyond the repository it was given, so one
instance per request (per session) is the intended use.
"""

import re
from typing import Any, Optional

from restroom_directory.config import settings
from restroom_directory.data.aggregation import aggregate, group_ratings
from restroom_directory.data.criteria import FilterCriteria, is_finite_number
from restroom_directory.data.records import (
    AccessibilityFeature,
    Address,
    Category,
    Image,
    OpeningHour,
    RestroomWithRating,
    Review,
)
from restroom_directory.data.repository import RestroomRepository
from restroom_directory.data.validation import validate_batch, validate_restroom, validate_review
from restroom_directory.exceptions import InvalidParameterError, InvalidRestroomIdError, RestroomNotFoundError
from restroom_directory.geo import bounding_box, distance_km
from restroom_directory.logging_config import get_logger

logger = get_logger(__name__)

RESTROOM_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def check_restroom_id(restroom_id: Any) -> str:
    """Return the ID unchanged, or raise InvalidRestroomIdError."""
    if not isinstance(restroom_id, str) or not RESTROOM_ID_RE.match(restroom_id):
        raise InvalidRestroomIdError(restroom_id)
    return restroom_id


def _check_coordinate(name: str, value: Any, bound: float) -> float:
    if not is_finite_number(value):
        raise InvalidParameterError(name, "must be a finite number", value=value)
    if not -bound <= value <= bound:
        raise InvalidParameterError(name, f"must be between -{bound:g} and {bound:g}", value=value)
    return float(value)


def _with_distance(
    restrooms: list[RestroomWithRating], latitude: float, longitude: float
) -> list[RestroomWithRating]:
    """Attach distance and sort ascending; ties keep their incoming (ID) order."""
    located = [
        r.model_copy(update={"distance": distance_km(latitude, longitude, r.latitude, r.longitude)})
        for r in restrooms
    ]
    located.sort(key=lambda r: r.distance)
    return located


class RestroomQueryEngine:
    """
    Read operations over restrooms, with ratings aggregated at query time.

    Usage:
        with session_factory() as session:
            engine = RestroomQueryEngine(RestroomRepository(session))
            nearby = engine.nearby(40.7128, -74.0060, limit=10)
    """

    def __init__(self, repository: RestroomRepository):
        self.repository = repository

    # --- Pipeline ---

    def _materialize(self, rows: list[dict[str, Any]]) -> list[RestroomWithRating]:
        """Aggregate ratings onto raw rows and validate the result."""
        if not rows:
            return []
        ratings = group_ratings(self.repository.fetch_ratings([row["id"] for row in rows]))
        aggregated = [aggregate(row, ratings.get(row["id"], [])) for row in rows]
        return validate_batch(aggregated, validate_restroom).accepted

    @staticmethod
    def _apply_criteria(
        restrooms: list[RestroomWithRating], criteria: FilterCriteria
    ) -> list[RestroomWithRating]:
        """Post-aggregation predicates: rating threshold, distance, radius, limit."""
        if criteria.min_rating is not None:
            restrooms = [r for r in restrooms if r.review_rating >= criteria.min_rating]

        if criteria.has_origin:
            restrooms = _with_distance(restrooms, criteria.latitude, criteria.longitude)
            if criteria.radius_km is not None:
                restrooms = [r for r in restrooms if r.distance <= criteria.radius_km]

        if criteria.limit is not None:
            restrooms = restrooms[: criteria.limit]
        return restrooms

    def _require_restroom(self, restroom_id: Any) -> str:
        restroom_id = check_restroom_id(restroom_id)
        if not self.repository.restroom_exists(restroom_id):
            raise RestroomNotFoundError(restroom_id)
        return restroom_id

    # --- Operations ---

    def list_restrooms(self) -> list[RestroomWithRating]:
        """Every restroom with its aggregated rating, ordered by ID."""
        return self._materialize(self.repository.fetch_restrooms())

    def get_restroom(self, restroom_id: Any) -> RestroomWithRating:
        """One restroom. A row that fails validation is reported as not found."""
        restroom_id = check_restroom_id(restroom_id)
        row = self.repository.fetch_restroom(restroom_id)
        restrooms = self._materialize([row]) if row else []
        if not restrooms:
            raise RestroomNotFoundError(restroom_id)
        return restrooms[0]

    def nearby(
        self,
        latitude: Any,
        longitude: Any,
        limit: Any = None,
        radius_km: Any = None,
    ) -> list[RestroomWithRating]:
        """
        Restrooms within ``radius_km`` of a point, nearest first.

        Raises InvalidParameterError for non-finite or out-of-range
        coordinates, a limit outside 1..nearby_max_limit, or a radius that
        is not a positive finite number.
        """
        latitude = _check_coordinate("latitude", latitude, 90)
        longitude = _check_coordinate("longitude", longitude, 180)

        if limit is None:
            limit = settings.query.nearby_default_limit
        max_limit = settings.query.nearby_max_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= max_limit:
            raise InvalidParameterError("limit", f"must be an integer between 1 and {max_limit}", value=limit)

        if radius_km is None:
            radius_km = settings.query.nearby_default_radius_km
        if not is_finite_number(radius_km) or radius_km <= 0:
            raise InvalidParameterError("radius", "must be a positive finite number", value=radius_km)

        window = bounding_box(latitude, longitude, radius_km)
        candidates = self._materialize(self.repository.fetch_in_window(*window))
        ranked = [r for r in _with_distance(candidates, latitude, longitude) if r.distance <= radius_km]
        logger.debug(
            "nearby(%.5f, %.5f, r=%skm): %d candidates, %d in range",
            latitude, longitude, radius_km, len(candidates), len(ranked),
        )
        return ranked[:limit]

    def search(self, text: Optional[str], criteria: Optional[FilterCriteria] = None) -> list[RestroomWithRating]:
        """
        Case-insensitive substring search plus optional filter predicates.

        Unordered unless the criteria carry a coordinate, in which case
        results are sorted by distance.
        """
        if text is None or not str(text).strip():
            raise InvalidParameterError("query", "search text is required", value=text)
        criteria = criteria or FilterCriteria()
        rows = self.repository.fetch_matching(text=str(text).strip(), features=criteria.feature_predicates())
        return self._apply_criteria(self._materialize(rows), criteria)

    def filter(self, criteria: FilterCriteria) -> list[RestroomWithRating]:
        """All supplied predicates combined with AND; no text match."""
        rows = self.repository.fetch_matching(features=criteria.feature_predicates())
        return self._apply_criteria(self._materialize(rows), criteria)

    def reviews(self, restroom_id: Any) -> list[Review]:
        """Reviews for a restroom, newest first. Malformed reviews are dropped."""
        restroom_id = self._require_restroom(restroom_id)
        return validate_batch(self.repository.fetch_reviews(restroom_id), validate_review).accepted

    # --- Descriptive data ---

    def address(self, restroom_id: Any) -> Optional[Address]:
        restroom_id = self._require_restroom(restroom_id)
        row = self.repository.get_address(restroom_id)
        return Address.model_validate(row) if row else None

    def accessibility_features(self, restroom_id: Any) -> list[AccessibilityFeature]:
        restroom_id = self._require_restroom(restroom_id)
        return [AccessibilityFeature.model_validate(f) for f in self.repository.get_accessibility_features(restroom_id)]

    def categories(self, restroom_id: Any) -> list[Category]:
        restroom_id = self._require_restroom(restroom_id)
        return [Category.model_validate(c) for c in self.repository.get_categories(restroom_id)]

    def opening_hours(self, restroom_id: Any) -> list[OpeningHour]:
        restroom_id = self._require_restroom(restroom_id)
        return [OpeningHour.model_validate(h) for h in self.repository.get_opening_hours(restroom_id)]

    def images(self, restroom_id: Any) -> list[Image]:
        restroom_id = self._require_restroom(restroom_id)
        return [Image.model_validate(i) for i in self.repository.get_images(restroom_id)]
