# ridehail/models/trip.py
import enum
import uuid

from sqlalchemy import Column, String, Enum, ForeignKey, DateTime, Index, func
from sqlalchemy.orm import relationship
from ridehail.database import Base


class TripStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SEARCHING = "SEARCHING"
    MATCHED = "MATCHED"
    DRIVER_ASSIGNED = "DRIVER_ASSIGNED"
    DRIVER_EN_ROUTE = "DRIVER_EN_ROUTE"
    DRIVER_ARRIVED = "DRIVER_ARRIVED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"
    NO_DRIVERS = "NO_DRIVERS"


class Trip(Base):
    __tablename__ = "trips"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    passenger_id = Column(String(36), ForeignKey("accounts.id"), nullable=False)
    driver_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)
    status = Column(Enum(TripStatus, name="trip_status"), default=TripStatus.SEARCHING, nullable=False)
    pickup_address = Column(String(255))
    dropoff_address = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index("ix_trips_driver_status", "driver_id", "status"),
        Index("ix_trips_passenger_id", "passenger_id"),
    )

    passenger = relationship("Account", foreign_keys=[passenger_id])
    driver = relationship("Account", foreign_keys=[driver_id])
    ratings = relationship("Rating", back_populates="trip", cascade="all, delete-orphan", passive_deletes=True)
