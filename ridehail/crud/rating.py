# ridehail/crud/rating.py
"""
Rating CRUD Operations
Rating rows, per-profile rating aggregates and read-side summaries.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ridehail.models.account import DriverProfile, PassengerProfile
from ridehail.models.rating import (
    Rating,
    RatingCategory,
    RatingDirection,
    CATEGORY_BY_DIRECTION,
)

_TWO_PLACES = Decimal("0.01")

PROFILE_MODEL_BY_CATEGORY = {
    RatingCategory.DRIVER: DriverProfile,
    RatingCategory.PASSENGER: PassengerProfile,
}


def round_average(total: int, count: int) -> float:
    """Mean of ``total`` over ``count`` rounded half-up to 2 decimals."""
    if not count:
        return 0.0
    mean = (Decimal(total) / Decimal(count)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    return float(mean)


# ======================
# RATING CRUD
# ======================

def create_rating(
    db: Session,
    trip_id: str,
    rated_by: str,
    rated_user: str,
    direction: RatingDirection,
    stars: int,
    comment: Optional[str] = None,
) -> Rating:
    """
    Insert a rating and flush it.

    The flush runs the INSERT inside the caller's transaction, so a
    uniqueness violation on (trip_id, direction) surfaces here as
    ``sqlalchemy.exc.IntegrityError``.
    """
    rating = Rating(
        trip_id=trip_id,
        rated_by=rated_by,
        rated_user=rated_user,
        direction=direction,
        stars=stars,
        comment=comment,
    )
    db.add(rating)
    db.flush()
    return rating


def get_rating_by_trip_direction(
    db: Session,
    trip_id: str,
    direction: RatingDirection,
) -> Optional[Rating]:
    return db.query(Rating).filter(
        Rating.trip_id == trip_id,
        Rating.direction == direction,
    ).first()


def get_ratings_for_trip(db: Session, trip_id: str) -> List[Rating]:
    """All ratings of a trip with their rater loaded, newest first."""
    return (
        db.query(Rating)
        .options(joinedload(Rating.rater))
        .filter(Rating.trip_id == trip_id)
        .order_by(Rating.created_at.desc())
        .all()
    )


def _received_query(db: Session, user_id: str, direction: Optional[RatingDirection]):
    query = db.query(Rating).filter(Rating.rated_user == user_id)
    if direction is not None:
        query = query.filter(Rating.direction == direction)
    return query


def get_ratings_received(
    db: Session,
    user_id: str,
    direction: Optional[RatingDirection] = None,
    limit: int = 20,
    offset: int = 0,
) -> List[Rating]:
    return (
        _received_query(db, user_id, direction)
        .options(joinedload(Rating.rater))
        .order_by(Rating.created_at.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


def count_ratings_received(
    db: Session,
    user_id: str,
    direction: Optional[RatingDirection] = None,
) -> int:
    return _received_query(db, user_id, direction).count()


def get_star_distribution(
    db: Session,
    user_id: str,
    direction: Optional[RatingDirection] = None,
) -> Dict[int, int]:
    """
    Histogram of star values received by a user.

    Returns:
        Dictionary with counts for every star value: {1: count, ..., 5: count}
    """
    distribution = {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}

    query = db.query(
        Rating.stars,
        func.count(Rating.id).label("count"),
    ).filter(Rating.rated_user == user_id)
    if direction is not None:
        query = query.filter(Rating.direction == direction)

    for stars, count in query.group_by(Rating.stars).all():
        distribution[int(stars)] = int(count)

    return distribution


# ======================
# RATING AGGREGATES
# ======================

def calculate_received_rating(
    db: Session,
    user_id: str,
    direction: RatingDirection,
) -> Tuple[float, int]:
    """
    Recompute the average and count over every rating row a user received
    in one direction.

    Runs inside the caller's transaction, so a rating flushed earlier in the
    same transaction is included.

    Returns:
        Tuple of (average_rating, total_ratings)
    """
    result = db.query(
        func.coalesce(func.sum(Rating.stars), 0).label("total_stars"),
        func.count(Rating.id).label("total"),
    ).filter(
        Rating.rated_user == user_id,
        Rating.direction == direction,
    ).one()

    total = int(result.total or 0)
    return (round_average(int(result.total_stars or 0), total), total)


def get_profile_for_update(db: Session, account_id: str, category: RatingCategory):
    """
    Load the profile row holding the aggregate for ``category`` and lock it
    until the end of the transaction.
    """
    model = PROFILE_MODEL_BY_CATEGORY[category]
    return (
        db.query(model)
        .filter(model.account_id == account_id)
        .with_for_update()
        .first()
    )


def update_received_rating(db: Session, account_id: str, direction: RatingDirection):
    """
    Recalculate and persist the aggregate fed by ``direction`` ratings.

    Returns:
        The updated profile, or None when the account has no profile of the
        matching category.
    """
    profile = get_profile_for_update(db, account_id, CATEGORY_BY_DIRECTION[direction])
    if profile is None:
        return None

    avg_rating, total = calculate_received_rating(db, account_id, direction)
    profile.rating_avg = avg_rating
    profile.rating_count = total

    db.flush()
    return profile
