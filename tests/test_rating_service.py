"""
Rating submission workflow tests
Direction inference, duplicate prevention, aggregate recomputation and rollback
"""

from datetime import datetime, timedelta

import pytest

from ridehail.crud import rating as rating_crud
from ridehail.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ridehail.models.account import DriverProfile, PassengerProfile
from ridehail.models.rating import Rating, RatingDirection
from ridehail.models.trip import TripStatus
from ridehail.services import rating_service


def _passenger_profile(db, account):
    db.expire_all()
    return db.query(PassengerProfile).filter(PassengerProfile.account_id == account.id).one()


def _driver_profile(db, account):
    db.expire_all()
    return db.query(DriverProfile).filter(DriverProfile.account_id == account.id).one()


# ======================
# SUBMISSION
# ======================

def test_driver_rates_passenger(db_session, completed_trip, driver, passenger):
    result = rating_service.submit_rating(
        db_session, driver.id, completed_trip.id, 5, "Polite and on time"
    )

    assert result["direction"] == RatingDirection.DRIVER_TO_PASSENGER
    assert result["rated_user"] == passenger.id
    assert result["stars"] == 5
    assert result["comment"] == "Polite and on time"
    assert result["id"] is not None
    assert result["created_at"] is not None

    profile = _passenger_profile(db_session, passenger)
    assert profile.rating_avg == 5.0
    assert profile.rating_count == 1


def test_trip_scenario_both_directions_then_duplicate(db_session, completed_trip, driver, passenger):
    rating_service.submit_rating(db_session, driver.id, completed_trip.id, 5)
    assert (_passenger_profile(db_session, passenger).rating_avg,
            _passenger_profile(db_session, passenger).rating_count) == (5.0, 1)

    result = rating_service.submit_rating(db_session, passenger.id, completed_trip.id, 3)
    assert result["direction"] == RatingDirection.PASSENGER_TO_DRIVER
    assert result["rated_user"] == driver.id
    driver_profile = _driver_profile(db_session, driver)
    assert (driver_profile.rating_avg, driver_profile.rating_count) == (3.0, 1)

    with pytest.raises(ConflictError):
        rating_service.submit_rating(db_session, driver.id, completed_trip.id, 1, "changed my mind")

    first = db_session.query(Rating).filter(
        Rating.trip_id == completed_trip.id,
        Rating.direction == RatingDirection.DRIVER_TO_PASSENGER,
    ).one()
    assert first.stars == 5
    assert first.comment is None
    assert db_session.query(Rating).count() == 2
    assert _passenger_profile(db_session, passenger).rating_count == 1


def test_aggregate_recomputed_after_every_submission(db_session, make_account, make_trip, driver):
    expected = [(4, 4.0), (5, 4.5), (3, 4.0)]

    for i, (stars, average) in enumerate(expected, start=1):
        rider = make_account(f"Rider{i}")
        trip = make_trip(rider, driver)
        rating_service.submit_rating(db_session, rider.id, trip.id, stars)

        profile = _driver_profile(db_session, driver)
        assert profile.rating_avg == average
        assert profile.rating_count == i


def test_aggregate_rounds_to_two_decimals(db_session, make_account, make_trip, driver):
    for i, stars in enumerate((5, 4, 4)):
        rider = make_account(f"Rider{i}")
        rating_service.submit_rating(db_session, rider.id, make_trip(rider, driver).id, stars)

    profile = _driver_profile(db_session, driver)
    assert profile.rating_avg == 4.33
    assert profile.rating_count == 3


def test_missing_aggregate_row_does_not_fail_submission(db_session, make_account, make_trip, driver):
    rider = make_account("Nop", passenger_profile=False)
    trip = make_trip(rider, driver)

    result = rating_service.submit_rating(db_session, driver.id, trip.id, 4)

    assert result["rated_user"] == rider.id
    assert db_session.query(Rating).count() == 1


@pytest.mark.parametrize("stars", [1, 2, 3, 4, 5])
def test_every_valid_star_value_accepted(db_session, completed_trip, passenger, stars):
    result = rating_service.submit_rating(db_session, passenger.id, completed_trip.id, stars)
    assert result["stars"] == stars


def test_blank_comment_stored_as_none(db_session, completed_trip, passenger):
    result = rating_service.submit_rating(db_session, passenger.id, completed_trip.id, 4, "   ")
    assert result["comment"] is None


def test_comment_at_limit_accepted(db_session, completed_trip, passenger):
    result = rating_service.submit_rating(db_session, passenger.id, completed_trip.id, 4, "x" * 500)
    assert len(result["comment"]) == 500


# ======================
# VALIDATION & STATE ERRORS
# ======================

@pytest.mark.parametrize("stars", [0, 6, -1, "abc", "5", 4.5, True, None])
def test_invalid_stars_rejected(db_session, completed_trip, passenger, stars):
    with pytest.raises(ValidationError):
        rating_service.submit_rating(db_session, passenger.id, completed_trip.id, stars)
    assert db_session.query(Rating).count() == 0


def test_oversized_comment_rejected(db_session, completed_trip, passenger):
    with pytest.raises(ValidationError, match="500 characters"):
        rating_service.submit_rating(db_session, passenger.id, completed_trip.id, 4, "x" * 501)
    assert db_session.query(Rating).count() == 0


@pytest.mark.parametrize("trip_id", [None, ""])
def test_missing_trip_id_rejected(db_session, passenger, trip_id):
    with pytest.raises(ValidationError):
        rating_service.submit_rating(db_session, passenger.id, trip_id, 4)


def test_unknown_trip(db_session, passenger):
    with pytest.raises(NotFoundError):
        rating_service.submit_rating(db_session, passenger.id, "00000000-0000-0000-0000-000000000000", 4)


@pytest.mark.parametrize(
    "status",
    [TripStatus.SEARCHING, TripStatus.DRIVER_ASSIGNED, TripStatus.IN_PROGRESS, TripStatus.CANCELED],
)
def test_non_completed_trip_rejected(db_session, make_trip, passenger, driver, status):
    trip = make_trip(passenger, driver, status=status)

    with pytest.raises(InvalidStateError):
        rating_service.submit_rating(db_session, passenger.id, trip.id, 5)
    assert db_session.query(Rating).count() == 0


def test_non_participant_forbidden(db_session, make_account, completed_trip):
    outsider = make_account("Olga", "Outsider")

    with pytest.raises(ForbiddenError):
        rating_service.submit_rating(db_session, outsider.id, completed_trip.id, 5)
    assert db_session.query(Rating).count() == 0


def test_trip_without_driver_has_no_rated_party(db_session, make_trip, passenger):
    trip = make_trip(passenger, None)

    with pytest.raises(InvalidStateError):
        rating_service.submit_rating(db_session, passenger.id, trip.id, 5)
    assert db_session.query(Rating).count() == 0


# ======================
# CONCURRENCY & ROLLBACK
# ======================

def test_constraint_violation_maps_to_conflict(db_session, monkeypatch, completed_trip, driver, passenger):
    """A submission that slipped past the pre-check still loses to the constraint"""
    rating_service.submit_rating(db_session, driver.id, completed_trip.id, 5)

    monkeypatch.setattr(rating_crud, "get_rating_by_trip_direction", lambda *args, **kwargs: None)

    with pytest.raises(ConflictError):
        rating_service.submit_rating(db_session, driver.id, completed_trip.id, 2)

    rows = db_session.query(Rating).all()
    assert len(rows) == 1
    assert rows[0].stars == 5
    profile = _passenger_profile(db_session, passenger)
    assert (profile.rating_avg, profile.rating_count) == (5.0, 1)


def test_failed_aggregate_write_rolls_back_rating(db_session, monkeypatch, completed_trip, driver, passenger):
    def _boom(*args, **kwargs):
        raise RuntimeError("aggregate write failed")

    monkeypatch.setattr(rating_crud, "update_received_rating", _boom)

    with pytest.raises(InternalError) as exc_info:
        rating_service.submit_rating(db_session, passenger.id, completed_trip.id, 2)

    assert "aggregate write failed" not in exc_info.value.message
    assert db_session.query(Rating).count() == 0
    profile = _driver_profile(db_session, driver)
    assert (profile.rating_avg, profile.rating_count) == (0.0, 0)


def test_failed_recomputation_rolls_back_rating(db_session, monkeypatch, completed_trip, driver, passenger):
    def _boom(*args, **kwargs):
        raise RuntimeError("read failed")

    monkeypatch.setattr(rating_crud, "calculate_received_rating", _boom)

    with pytest.raises(InternalError):
        rating_service.submit_rating(db_session, driver.id, completed_trip.id, 4)

    assert db_session.query(Rating).count() == 0
    assert _passenger_profile(db_session, passenger).rating_count == 0


def test_submission_possible_after_rollback(db_session, monkeypatch, completed_trip, driver, passenger):
    with monkeypatch.context() as m:
        m.setattr(rating_crud, "update_received_rating", lambda *a, **k: (_ for _ in ()).throw(RuntimeError("x")))
        with pytest.raises(InternalError):
            rating_service.submit_rating(db_session, passenger.id, completed_trip.id, 2)

    result = rating_service.submit_rating(db_session, passenger.id, completed_trip.id, 4)
    assert result["stars"] == 4
    assert _driver_profile(db_session, driver).rating_count == 1


# ======================
# QUERIES
# ======================

def test_list_trip_ratings_newest_first_with_rater(db_session, completed_trip, driver, passenger):
    rating_service.submit_rating(db_session, driver.id, completed_trip.id, 5)
    rating_service.submit_rating(db_session, passenger.id, completed_trip.id, 3, "Smooth ride")

    # pin timestamps so ordering does not depend on clock resolution
    base = datetime(2026, 1, 1, 12, 0, 0)
    for rating in db_session.query(Rating).all():
        offset = 0 if rating.direction == RatingDirection.DRIVER_TO_PASSENGER else 1
        rating.created_at = base + timedelta(minutes=offset)
    db_session.commit()

    result = rating_service.list_trip_ratings(db_session, completed_trip.id)
    ratings = result["ratings"]

    assert [r["direction"] for r in ratings] == [
        RatingDirection.PASSENGER_TO_DRIVER,
        RatingDirection.DRIVER_TO_PASSENGER,
    ]
    assert ratings[0]["rated_by"] == passenger.id
    assert ratings[0]["rater"] == {"id": passenger.id, "name": "Pat Passenger", "avatar_url": None}
    assert ratings[1]["rater"]["avatar_url"] == "https://cdn.example/dana.png"


def test_list_trip_ratings_empty(db_session, completed_trip):
    assert rating_service.list_trip_ratings(db_session, completed_trip.id) == {"ratings": []}


def _rate_driver_many(db_session, make_account, make_trip, driver, stars_values):
    for i, stars in enumerate(stars_values):
        rider = make_account(f"Rider{i}")
        rating_service.submit_rating(db_session, rider.id, make_trip(rider, driver).id, stars)


def test_user_ratings_summary_covers_full_filtered_set(db_session, make_account, make_trip, driver):
    """The summary is computed over every matching rating, not only the returned page"""
    _rate_driver_many(db_session, make_account, make_trip, driver, [5, 4, 1])

    first = rating_service.list_user_ratings(db_session, driver.id, page=1, page_size=2)
    second = rating_service.list_user_ratings(db_session, driver.id, page=2, page_size=2)

    assert len(first["ratings"]) == 2
    assert len(second["ratings"]) == 1
    for page in (first, second):
        assert page["summary"] == {
            "total_ratings": 3,
            "average_rating": 3.33,
            "distribution": {1: 1, 2: 0, 3: 0, 4: 1, 5: 1},
        }
    assert first["pagination"] == {"page": 1, "page_size": 2, "total": 3, "total_pages": 2}


def test_user_ratings_category_filter(db_session, make_account, make_trip, driver):
    _rate_driver_many(db_session, make_account, make_trip, driver, [5, 3])
    # the driver also took a ride as passenger and was rated for it
    other_driver = make_account("Olu", driver_profile=True, passenger_profile=False)
    trip = make_trip(driver, other_driver)
    rating_service.submit_rating(db_session, other_driver.id, trip.id, 1)

    as_driver = rating_service.list_user_ratings(db_session, driver.id, category="driver")
    as_passenger = rating_service.list_user_ratings(db_session, driver.id, category="passenger")
    everything = rating_service.list_user_ratings(db_session, driver.id)

    assert as_driver["summary"]["total_ratings"] == 2
    assert as_driver["summary"]["average_rating"] == 4.0
    assert all(r["direction"] == RatingDirection.PASSENGER_TO_DRIVER for r in as_driver["ratings"])
    assert as_passenger["summary"]["total_ratings"] == 1
    assert as_passenger["ratings"][0]["rater"]["name"] == "Olu Test"
    assert everything["summary"]["total_ratings"] == 3


def test_user_ratings_empty(db_session, passenger):
    result = rating_service.list_user_ratings(db_session, passenger.id)

    assert result["summary"] == {
        "total_ratings": 0,
        "average_rating": 0.0,
        "distribution": {1: 0, 2: 0, 3: 0, 4: 0, 5: 0},
    }
    assert result["ratings"] == []
    assert result["pagination"]["total_pages"] == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"category": "admin"},
        {"page": 0},
        {"page_size": 0},
        {"page_size": 1000},
    ],
)
def test_user_ratings_bad_arguments(db_session, passenger, kwargs):
    with pytest.raises(ValidationError):
        rating_service.list_user_ratings(db_session, passenger.id, **kwargs)


def test_check_trip_rated(db_session, completed_trip, driver, passenger):
    before = rating_service.check_trip_rated(db_session, driver.id, completed_trip.id)
    assert before == {"has_rated": False, "rating": None}

    rating_service.submit_rating(db_session, driver.id, completed_trip.id, 4, "ok")

    after = rating_service.check_trip_rated(db_session, driver.id, completed_trip.id)
    assert after["has_rated"] is True
    assert after["rating"]["stars"] == 4
    assert after["rating"]["comment"] == "ok"

    # the passenger's side is tracked separately
    other_side = rating_service.check_trip_rated(db_session, passenger.id, completed_trip.id)
    assert other_side["has_rated"] is False


def test_check_trip_rated_errors(db_session, make_account, completed_trip):
    outsider = make_account("Olga", "Outsider")

    with pytest.raises(ForbiddenError):
        rating_service.check_trip_rated(db_session, outsider.id, completed_trip.id)
    with pytest.raises(NotFoundError):
        rating_service.check_trip_rated(db_session, outsider.id, "missing-trip")
