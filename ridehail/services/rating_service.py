# ridehail/services/rating_service.py
"""
Rating Service Layer
Business logic for trip rating submission and rating display
"""

import logging
import math
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ridehail.config import settings
from ridehail.crud import rating as rating_crud
from ridehail.crud import trip as trip_crud
from ridehail.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    RatingError,
    ValidationError,
)
from ridehail.models.rating import (
    DIRECTION_BY_CATEGORY,
    Rating,
    RatingCategory,
    RatingDirection,
)
from ridehail.models.trip import Trip, TripStatus

logger = logging.getLogger(__name__)


# ======================
# HELPERS
# ======================

def _rating_public(rating: Rating) -> Dict[str, Any]:
    return {
        "id": rating.id,
        "stars": rating.stars,
        "comment": rating.comment,
        "direction": rating.direction,
        "created_at": rating.created_at,
    }


def _rater_brief(rating: Rating) -> Optional[Dict[str, Any]]:
    rater = rating.rater
    if rater is None:
        return None
    return {
        "id": rater.id,
        "name": rater.display_name,
        "avatar_url": rater.avatar_url,
    }


def _normalize_comment(comment: Optional[str]) -> Optional[str]:
    if comment is None:
        return None
    if not isinstance(comment, str):
        raise ValidationError("Comment must be text")
    comment = comment.strip()
    if not comment:
        return None
    if len(comment) > settings.RATING_COMMENT_MAX_LENGTH:
        raise ValidationError(
            f"Comment must be {settings.RATING_COMMENT_MAX_LENGTH} characters or less"
        )
    return comment


def validate_submission(trip_id: Any, stars: Any, comment: Optional[str]) -> Optional[str]:
    """
    Check the raw submission fields.

    Returns:
        The normalized comment

    Raises:
        ValidationError: If a field is missing or out of range
    """
    if not trip_id:
        raise ValidationError("Trip ID and stars are required")
    if stars is None:
        raise ValidationError("Trip ID and stars are required")
    # bool is an int subclass; True must not pass as one star
    if isinstance(stars, bool) or not isinstance(stars, int):
        raise ValidationError("Stars must be an integer")
    if not (1 <= stars <= 5):
        raise ValidationError("Stars must be between 1 and 5")
    return _normalize_comment(comment)


def infer_direction(trip: Trip, actor_id: str) -> Tuple[RatingDirection, Optional[str]]:
    """
    Work out which way a rating goes from the actor's role in the trip.

    Returns:
        Tuple of (direction, rated_party_id); the rated party may be None
        when the trip never had that participant assigned.

    Raises:
        ForbiddenError: If the actor is neither the driver nor the passenger
    """
    if trip.driver_id is not None and actor_id == trip.driver_id:
        return RatingDirection.DRIVER_TO_PASSENGER, trip.passenger_id
    if trip.passenger_id is not None and actor_id == trip.passenger_id:
        return RatingDirection.PASSENGER_TO_DRIVER, trip.driver_id
    raise ForbiddenError("You are not authorized to rate this trip")


def _load_trip(db: Session, trip_id: str) -> Trip:
    trip = trip_crud.get_trip(db, trip_id)
    if trip is None:
        raise NotFoundError("Trip not found")
    return trip


# ======================
# RATING SUBMISSION
# ======================

def submit_rating(
    db: Session,
    actor_id: str,
    trip_id: str,
    stars: int,
    comment: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Submit a rating for a completed trip.

    Infers the direction, rejects duplicates, creates the rating and
    recomputes the rated party's aggregate, all in one transaction. Any
    failure rolls the whole transaction back.

    Args:
        db: Database session
        actor_id: Account submitting the rating
        trip_id: Trip identifier
        stars: Rating value (1-5)
        comment: Optional text comment

    Returns:
        Dictionary with the created rating's public fields

    Raises:
        RatingError: One of the rating error kinds
    """
    comment = validate_submission(trip_id, stars, comment)

    try:
        trip = _load_trip(db, trip_id)

        if trip.status != TripStatus.COMPLETED:
            raise InvalidStateError("Can only rate completed trips")

        direction, rated_user = infer_direction(trip, actor_id)
        if not rated_user:
            raise InvalidStateError("Rated party cannot be determined for this trip")

        if rating_crud.get_rating_by_trip_direction(db, trip_id, direction) is not None:
            raise ConflictError("You have already rated this trip")

        try:
            rating = rating_crud.create_rating(
                db=db,
                trip_id=trip_id,
                rated_by=actor_id,
                rated_user=rated_user,
                direction=direction,
                stars=stars,
                comment=comment,
            )
        except IntegrityError as exc:
            logger.warning(
                "Rating for trip %s (%s) rejected by uniqueness constraint",
                trip_id,
                direction.value,
            )
            raise ConflictError("You have already rated this trip") from exc

        logger.info(
            "Rating %s created for trip %s (%s) rating account %s",
            rating.id,
            trip_id,
            direction.value,
            rated_user,
        )

        profile = rating_crud.update_received_rating(db, rated_user, direction)
        if profile is None:
            logger.info(
                "No %s profile for account %s, aggregate not updated",
                direction.value,
                rated_user,
            )
        else:
            logger.info(
                "Aggregate for account %s (%s): average=%.2f count=%d",
                rated_user,
                direction.value,
                profile.rating_avg,
                profile.rating_count,
            )

        result = _rating_public(rating)
        result.update({"trip_id": rating.trip_id, "rated_user": rating.rated_user})

        db.commit()
        return result

    except RatingError:
        db.rollback()
        raise
    except Exception as exc:
        db.rollback()
        logger.exception("Failed to submit rating for trip %s", trip_id)
        raise InternalError("Failed to submit rating") from exc


# ======================
# RATING RETRIEVAL
# ======================

def list_trip_ratings(db: Session, trip_id: str) -> Dict[str, Any]:
    """All ratings of a trip with the rater's public identity, newest first."""
    ratings = rating_crud.get_ratings_for_trip(db, trip_id)
    return {
        "ratings": [
            {
                **_rating_public(r),
                "rated_by": r.rated_by,
                "rater": _rater_brief(r),
            }
            for r in ratings
        ]
    }


def parse_category(value: Optional[str]) -> Optional[RatingCategory]:
    if value is None or value == "":
        return None
    try:
        return RatingCategory(value)
    except ValueError:
        raise ValidationError("Rating type must be 'driver' or 'passenger'")


def list_user_ratings(
    db: Session,
    user_id: str,
    category: Optional[str] = None,
    page: int = 1,
    page_size: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Paginated ratings received by a user, with a summary.

    The summary (count, average, histogram) covers the whole filtered set,
    not only the returned page.

    Args:
        db: Database session
        user_id: Rated account
        category: 'driver', 'passenger' or None for both
        page: 1-based page number
        page_size: Ratings per page

    Returns:
        Dictionary with summary, ratings and pagination
    """
    parsed = parse_category(category)
    direction = DIRECTION_BY_CATEGORY[parsed] if parsed is not None else None

    if page_size is None:
        page_size = settings.RATING_DEFAULT_PAGE_SIZE
    if page < 1:
        raise ValidationError("Page must be 1 or greater")
    if not (1 <= page_size <= settings.RATING_MAX_PAGE_SIZE):
        raise ValidationError(
            f"Page size must be between 1 and {settings.RATING_MAX_PAGE_SIZE}"
        )

    distribution = rating_crud.get_star_distribution(db, user_id, direction)
    total = sum(distribution.values())
    total_stars = sum(stars * count for stars, count in distribution.items())

    ratings = rating_crud.get_ratings_received(
        db,
        user_id,
        direction,
        limit=page_size,
        offset=(page - 1) * page_size,
    )

    return {
        "summary": {
            "total_ratings": total,
            "average_rating": rating_crud.round_average(total_stars, total),
            "distribution": distribution,
        },
        "ratings": [
            {
                **_rating_public(r),
                "rated_by": r.rated_by,
                "rater": _rater_brief(r),
            }
            for r in ratings
        ],
        "pagination": {
            "page": page,
            "page_size": page_size,
            "total": total,
            "total_pages": math.ceil(total / page_size) if total else 0,
        },
    }


def check_trip_rated(db: Session, actor_id: str, trip_id: str) -> Dict[str, Any]:
    """
    Report whether the actor's side of a trip has already been rated.

    Raises:
        NotFoundError: If the trip does not exist
        ForbiddenError: If the actor is not a participant
    """
    trip = _load_trip(db, trip_id)
    direction, _ = infer_direction(trip, actor_id)

    rating = rating_crud.get_rating_by_trip_direction(db, trip_id, direction)
    return {
        "has_rated": rating is not None,
        "rating": _rating_public(rating) if rating is not None else None,
    }
