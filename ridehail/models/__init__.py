# ridehail/models/__init__.py
# Import models in dependency order
from .account import Account, DriverProfile, PassengerProfile
from .trip import Trip, TripStatus
from .rating import Rating, RatingCategory, RatingDirection

__all__ = [
    "Account",
    "DriverProfile",
    "PassengerProfile",
    "Trip",
    "TripStatus",
    "Rating",
    "RatingCategory",
    "RatingDirection",
]
