# ridehail/models/rating.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Enum,
    ForeignKey,
    DateTime,
    CheckConstraint,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from ridehail.database import Base


class RatingDirection(str, enum.Enum):
    DRIVER_TO_PASSENGER = "DRIVER_TO_PASSENGER"
    PASSENGER_TO_DRIVER = "PASSENGER_TO_DRIVER"


class RatingCategory(str, enum.Enum):
    """Which profile a received rating counts towards."""

    DRIVER = "driver"
    PASSENGER = "passenger"


# Ratings received as a driver come from passengers, and vice versa.
DIRECTION_BY_CATEGORY = {
    RatingCategory.DRIVER: RatingDirection.PASSENGER_TO_DRIVER,
    RatingCategory.PASSENGER: RatingDirection.DRIVER_TO_PASSENGER,
}
CATEGORY_BY_DIRECTION = {v: k for k, v in DIRECTION_BY_CATEGORY.items()}


class Rating(Base):
    __tablename__ = "ratings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    trip_id = Column(String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    rated_by = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    rated_user = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    direction = Column(Enum(RatingDirection, name="rating_direction"), nullable=False)
    stars = Column(Integer, nullable=False)
    comment = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # Constraints
    __table_args__ = (
        UniqueConstraint("trip_id", "direction", name="uq_ratings_trip_direction"),
        CheckConstraint("stars >= 1 AND stars <= 5", name="check_stars_range"),
        Index("ix_ratings_rated_user", "rated_user"),
        Index("ix_ratings_rated_by", "rated_by"),
    )

    # Relationships
    trip = relationship("Trip", back_populates="ratings")
    rater = relationship("Account", foreign_keys=[rated_by])
    ratee = relationship("Account", foreign_keys=[rated_user])
