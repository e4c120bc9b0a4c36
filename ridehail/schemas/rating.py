# ridehail/schemas/rating.py
"""
Rating Pydantic Schemas
Request/response models for trip ratings
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ridehail.config import settings
from ridehail.models.rating import RatingDirection


# ======================
# REQUEST SCHEMAS
# ======================

class RatingCreate(BaseModel):
    """Schema for submitting a rating"""
    trip_id: str = Field(..., min_length=1, description="Trip identifier")
    stars: int = Field(..., ge=1, le=5, description="Rating from 1 to 5 stars")
    comment: Optional[str] = Field(
        None,
        max_length=settings.RATING_COMMENT_MAX_LENGTH,
        description="Rating comment (max 500 chars by default)",
    )

    @field_validator("comment")
    @classmethod
    def strip_comment(cls, v):
        """Blank comments are treated as no comment"""
        if v is None:
            return None
        v = v.strip()
        return v or None


# ======================
# RESPONSE SCHEMAS
# ======================

class RatingPublic(BaseModel):
    """Public fields of a rating"""
    id: str
    stars: int
    comment: Optional[str] = None
    direction: RatingDirection
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RatingSubmitResponse(RatingPublic):
    """Response after submitting a rating"""
    trip_id: str
    rated_user: str


class RaterBrief(BaseModel):
    id: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class RatingItem(RatingPublic):
    """Rating with the submitting account's public identity"""
    rated_by: str
    rater: Optional[RaterBrief] = None


class TripRatingsResponse(BaseModel):
    ratings: List[RatingItem]


class RatingSummary(BaseModel):
    total_ratings: int = Field(..., description="Number of ratings in the filtered set")
    average_rating: float = Field(..., description="Average stars, 2 decimals (0 when empty)")
    distribution: Dict[int, int] = Field(..., description="Count of each star value (1-5)")


class Pagination(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int


class UserRatingsResponse(BaseModel):
    summary: RatingSummary
    ratings: List[RatingItem]
    pagination: Pagination


class RatingCheckResponse(BaseModel):
    has_rated: bool = Field(..., description="Whether the caller's side of the trip is rated")
    rating: Optional[RatingPublic] = None
