"""
SQLAlchemy ORM models for the Restroom Directory.

One core table for restrooms plus one-to-many side tables for reviews and
descriptive data. Ratings are never stored on the restroom row: they are
aggregated from reviews on every read. ``poop_count`` is the only stored
counter.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String, Integer, Float, Text, DateTime, Boolean,
    ForeignKey, Index, UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from restroom_directory.data.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


# --- Core Tables ---


class PublicBathroom(Base):
    """A public restroom listing."""
    __tablename__ = "public_bathrooms"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255))
    address: Mapped[Optional[str]] = mapped_column(String(500))
    category: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    website: Mapped[Optional[str]] = mapped_column(String(500))
    hours_description: Mapped[Optional[str]] = mapped_column(String(255))
    price_range: Mapped[Optional[str]] = mapped_column(String(50))
    thumbnail: Mapped[Optional[str]] = mapped_column(Text)
    poop_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    reviews: Mapped[list["PublicBathroomReview"]] = relationship(back_populates="bathroom", cascade="all, delete-orphan")
    address_details: Mapped[Optional["PublicBathroomAddress"]] = relationship(back_populates="bathroom", cascade="all, delete-orphan")
    accessibility_features: Mapped[list["PublicBathroomAccessibilityFeature"]] = relationship(back_populates="bathroom", cascade="all, delete-orphan")
    categories: Mapped[list["PublicBathroomCategory"]] = relationship(back_populates="bathroom", cascade="all, delete-orphan")
    opening_hours: Mapped[list["PublicBathroomOpeningHour"]] = relationship(back_populates="bathroom", cascade="all, delete-orphan")
    images: Mapped[list["PublicBathroomImage"]] = relationship(back_populates="bathroom", cascade="all, delete-orphan")

    __table_args__ = (Index("ix_public_bathrooms_lat_lon", "latitude", "longitude"),)

    def __repr__(self) -> str:
        return f"<PublicBathroom(id='{self.id}', title='{self.title}')>"


class PublicBathroomReview(Base):
    """A single user review. Rating is optional."""
    __tablename__ = "public_bathroom_reviews"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    public_bathroom_id: Mapped[str] = mapped_column(String(64), ForeignKey("public_bathrooms.id"), index=True)
    rating: Mapped[Optional[float]] = mapped_column(Float)
    comment: Mapped[Optional[str]] = mapped_column(Text)
    reviewer_name: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    bathroom: Mapped["PublicBathroom"] = relationship(back_populates="reviews")

    __table_args__ = (Index("ix_reviews_bathroom_created", "public_bathroom_id", "created_at"),)

    def __repr__(self) -> str:
        return f"<PublicBathroomReview(bathroom='{self.public_bathroom_id}', rating={self.rating})>"


# --- Descriptive side tables ---


class PublicBathroomAddress(Base):
    """Structured address components, one row per restroom."""
    __tablename__ = "public_bathroom_addresses"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    public_bathroom_id: Mapped[str] = mapped_column(String(64), ForeignKey("public_bathrooms.id"), unique=True)
    street: Mapped[Optional[str]] = mapped_column(String(255))
    city: Mapped[Optional[str]] = mapped_column(String(100))
    state: Mapped[Optional[str]] = mapped_column(String(100))
    postal_code: Mapped[Optional[str]] = mapped_column(String(20))
    country: Mapped[Optional[str]] = mapped_column(String(100))
    borough: Mapped[Optional[str]] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    bathroom: Mapped["PublicBathroom"] = relationship(back_populates="address_details")


class PublicBathroomAccessibilityFeature(Base):
    """Named boolean feature (wheelchair_accessible, baby_changing, ...)."""
    __tablename__ = "public_bathroom_accessibility_features"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    public_bathroom_id: Mapped[str] = mapped_column(String(64), ForeignKey("public_bathrooms.id"), index=True)
    feature_name: Mapped[str] = mapped_column(String(100))
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    bathroom: Mapped["PublicBathroom"] = relationship(back_populates="accessibility_features")

    __table_args__ = (UniqueConstraint("public_bathroom_id", "feature_name", name="uq_bathroom_feature"),)


class PublicBathroomCategory(Base):
    __tablename__ = "public_bathroom_categories"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    public_bathroom_id: Mapped[str] = mapped_column(String(64), ForeignKey("public_bathrooms.id"), index=True)
    category_name: Mapped[str] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    bathroom: Mapped["PublicBathroom"] = relationship(back_populates="categories")


class PublicBathroomOpeningHour(Base):
    __tablename__ = "public_bathroom_opening_hours"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    public_bathroom_id: Mapped[str] = mapped_column(String(64), ForeignKey("public_bathrooms.id"), index=True)
    day_of_week: Mapped[str] = mapped_column(String(10))
    hours_text: Mapped[str] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    bathroom: Mapped["PublicBathroom"] = relationship(back_populates="opening_hours")


class PublicBathroomImage(Base):
    __tablename__ = "public_bathroom_images"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    public_bathroom_id: Mapped[str] = mapped_column(String(64), ForeignKey("public_bathrooms.id"), index=True)
    image_url: Mapped[str] = mapped_column(Text)
    title: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    bathroom: Mapped["PublicBathroom"] = relationship(back_populates="images")
