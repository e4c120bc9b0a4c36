# ridehail/api/rating.py
"""
Trip Rating API Router

Endpoints:
- POST /ratings/ - Submit a rating for a completed trip
- GET /ratings/trip/{trip_id} - Ratings of a trip
- GET /ratings/user/{user_id} - Ratings received by a user, with summary
- GET /ratings/check/{trip_id} - Whether the caller already rated a trip
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ridehail.database import get_db
from ridehail.errors import RatingError
from ridehail.models.account import Account
from ridehail.schemas.rating import (
    RatingCheckResponse,
    RatingCreate,
    RatingSubmitResponse,
    TripRatingsResponse,
    UserRatingsResponse,
)
from ridehail.services import rating_service
from ridehail.utils.security import get_current_account

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ratings", tags=["ratings"])


def _http_error(exc: RatingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


# ======================
# SUBMIT RATING
# ======================
@router.post("/", response_model=RatingSubmitResponse, status_code=status.HTTP_201_CREATED)
def submit_rating(
    body: RatingCreate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db)
):
    """
    Rate the other participant of a completed trip.

    Requirements:
    - Trip must be completed
    - Caller must be the trip's driver or passenger
    - One rating per trip in each direction
    - Stars must be 1-5, comment max 500 characters
    """
    try:
        result = rating_service.submit_rating(
            db=db,
            actor_id=current_account.id,
            trip_id=body.trip_id,
            stars=body.stars,
            comment=body.comment,
        )
        return RatingSubmitResponse(**result)

    except RatingError as e:
        raise _http_error(e)
    except Exception:
        logger.exception("Unhandled error submitting rating")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit rating"
        )


# ======================
# GET TRIP RATINGS
# ======================
@router.get("/trip/{trip_id}", response_model=TripRatingsResponse)
def get_trip_ratings(
    trip_id: str,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db)
):
    """Ratings of a trip with the rater's public identity, newest first."""
    try:
        return TripRatingsResponse(**rating_service.list_trip_ratings(db, trip_id))

    except Exception:
        logger.exception("Failed to fetch ratings for trip %s", trip_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch ratings"
        )


# ======================
# GET USER RATINGS
# ======================
@router.get("/user/{user_id}", response_model=UserRatingsResponse)
def get_user_ratings(
    user_id: str,
    rating_type: Optional[str] = Query(None, alias="type", description="'driver' or 'passenger'"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db)
):
    """
    Ratings received by a user.

    The summary covers every rating matching the filter, not just this page.
    """
    try:
        result = rating_service.list_user_ratings(
            db=db,
            user_id=user_id,
            category=rating_type,
            page=page,
            page_size=page_size,
        )
        return UserRatingsResponse(**result)

    except RatingError as e:
        raise _http_error(e)
    except Exception:
        logger.exception("Failed to fetch ratings for user %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch ratings"
        )


# ======================
# CHECK TRIP RATED
# ======================
@router.get("/check/{trip_id}", response_model=RatingCheckResponse)
def check_trip_rated(
    trip_id: str,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db)
):
    """Whether the caller has already rated their counterpart on this trip."""
    try:
        result = rating_service.check_trip_rated(db, current_account.id, trip_id)
        return RatingCheckResponse(**result)

    except RatingError as e:
        raise _http_error(e)
    except Exception:
        logger.exception("Failed to check rating for trip %s", trip_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check rating"
        )
