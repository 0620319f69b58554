"""
Closed search/filter criteria.

Criteria arrive from query strings or JSON bodies in camelCase or
snake_case. Unknown keys are rejected rather than passed through to the
store.
"""

import math
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from restroom_directory.config import settings

# Criteria field -> feature_name in public_bathroom_accessibility_features
FEATURE_FLAGS = (
    "wheelchair_accessible",
    "baby_changing",
    "gender_neutral",
    "free_to_use",
    "changing_room",
    "single_occupancy",
    "customer_only",
    "code_required",
    "attendant_present",
    "family_friendly",
    "soap_available",
    "well_stocked",
    "premium_products",
)


class FilterCriteria(BaseModel):
    """Feature, rating and location predicates, combined with AND."""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
        frozen=True,
    )

    wheelchair_accessible: Optional[bool] = None
    baby_changing: Optional[bool] = None
    gender_neutral: Optional[bool] = None
    free_to_use: Optional[bool] = None
    changing_room: Optional[bool] = None
    single_occupancy: Optional[bool] = None
    customer_only: Optional[bool] = None
    code_required: Optional[bool] = None
    attendant_present: Optional[bool] = None
    family_friendly: Optional[bool] = None
    soap_available: Optional[bool] = None
    well_stocked: Optional[bool] = None
    premium_products: Optional[bool] = None

    min_rating: Optional[float] = Field(
        None,
        ge=0,
        le=5,
        validation_alias=AliasChoices("minRating", "min_rating", "cleanliness"),
    )
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius_km: Optional[float] = Field(
        None,
        gt=0,
        validation_alias=AliasChoices("radius", "radiusKm", "radius_km"),
    )
    limit: Optional[int] = Field(None, ge=1)

    @field_validator("limit")
    @classmethod
    def limit_within_max(cls, v: Optional[int]) -> Optional[int]:
        # Same ceiling as nearby()
        max_limit = settings.query.nearby_max_limit
        if v is not None and v > max_limit:
            raise ValueError(f"limit must be at most {max_limit}")
        return v

    @model_validator(mode="after")
    def coordinates_come_in_pairs(self) -> "FilterCriteria":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be supplied together")
        if self.radius_km is not None and self.latitude is None:
            raise ValueError("radius requires latitude and longitude")
        return self

    @property
    def has_origin(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def feature_predicates(self) -> dict[str, bool]:
        """Feature flags that were actually set, keyed by feature name."""
        return {
            name: getattr(self, name)
            for name in FEATURE_FLAGS
            if getattr(self, name) is not None
        }


class SearchCriteria(FilterCriteria):
    """Filter predicates plus a free-text query."""

    query: Optional[str] = None

    @field_validator("query")
    @classmethod
    def strip_query(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


def is_finite_number(value) -> bool:
    """True for real, finite ints/floats (bools excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
