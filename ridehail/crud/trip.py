# ridehail/crud/trip.py
"""Read-only trip lookup used by the rating workflow."""

from typing import Optional

from sqlalchemy.orm import Session

from ridehail.models.trip import Trip


def get_trip(db: Session, trip_id: str) -> Optional[Trip]:
    """Return the trip with its status and participants, or None."""
    return db.query(Trip).filter(Trip.id == trip_id).first()
