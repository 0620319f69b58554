"""
Typed records surfaced to callers.

Raw rows coming back from the store are loosely typed (numbers may arrive
as strings or Decimals depending on the driver). These pydantic models are
the only shapes that leave the data layer; ``validation`` turns raw rows
into them.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Restroom(BaseModel):
    """A restroom listing with its derived rating statistics."""

    model_config = ConfigDict(from_attributes=True, allow_inf_nan=False, str_strip_whitespace=True)

    id: str = Field(..., min_length=1, max_length=64)
    title: str = Field(..., min_length=1)
    address: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    website: Optional[str] = None
    hours_description: Optional[str] = None
    price_range: Optional[str] = None
    thumbnail: Optional[str] = None
    created_at: Optional[datetime] = None
    review_count: int = Field(0, ge=0)
    review_rating: float = Field(0.0, ge=0, le=5)
    poop_count: int = Field(0, ge=0)


class RestroomWithRating(Restroom):
    """Restroom as returned to callers; ``distance`` only on geo queries."""

    distance: Optional[float] = Field(None, ge=0, description="Kilometres from the query coordinate.")


class Review(BaseModel):
    model_config = ConfigDict(from_attributes=True, allow_inf_nan=False)

    id: str = Field(..., min_length=1, max_length=64)
    public_bathroom_id: str = Field(..., min_length=1, max_length=64)
    rating: Optional[float] = Field(None, ge=0, le=5)
    comment: Optional[str] = None
    reviewer_name: Optional[str] = None
    created_at: Optional[datetime] = None


# --- Descriptive records ---


class Address(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    public_bathroom_id: str
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    borough: Optional[str] = None


class AccessibilityFeature(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    public_bathroom_id: str
    feature_name: str
    enabled: bool


class Category(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    public_bathroom_id: str
    category_name: str


class OpeningHour(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    public_bathroom_id: str
    day_of_week: str
    hours_text: str


class Image(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    public_bathroom_id: str
    image_url: str
    title: Optional[str] = None
    created_at: Optional[datetime] = None
