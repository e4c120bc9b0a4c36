"""Pytest bootstrap and shared database fixtures."""

from pathlib import Path
import sys

# Ensure project root is on sys.path so `import ridehail` works without install
PROJECT_ROOT = Path(__file__).resolve().parents[1]
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ridehail.database import Base
from ridehail.models.account import Account, DriverProfile, PassengerProfile
from ridehail.models.trip import Trip, TripStatus
from ridehail.utils.security import create_access_token


# ======================
# TEST DATABASE SETUP
# ======================

@pytest.fixture
def db_session():
    """Fresh in-memory database per test, shareable with TestClient threads"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = SessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def make_account(db_session):
    """Create an account, optionally with driver and/or passenger profiles"""

    def _make(first_name, last_name="Test", driver_profile=False, passenger_profile=True, avatar_url=None):
        account = Account(
            user_type="DRIVER" if driver_profile else "PASSENGER",
            first_name=first_name,
            last_name=last_name,
            avatar_url=avatar_url,
        )
        db_session.add(account)
        db_session.flush()
        if driver_profile:
            db_session.add(DriverProfile(account_id=account.id, license_number=f"LIC-{first_name}"))
        if passenger_profile:
            db_session.add(PassengerProfile(account_id=account.id))
        db_session.commit()
        return account

    return _make


@pytest.fixture
def make_trip(db_session):
    def _make(passenger, driver, status=TripStatus.COMPLETED):
        trip = Trip(
            passenger_id=passenger.id,
            driver_id=driver.id if driver is not None else None,
            status=status,
        )
        db_session.add(trip)
        db_session.commit()
        return trip

    return _make


@pytest.fixture
def driver(make_account):
    return make_account("Dana", "Driver", driver_profile=True, passenger_profile=False,
                        avatar_url="https://cdn.example/dana.png")


@pytest.fixture
def passenger(make_account):
    return make_account("Pat", "Passenger")


@pytest.fixture
def completed_trip(make_trip, passenger, driver):
    return make_trip(passenger, driver)


def auth_headers(account: Account) -> dict:
    token = create_access_token({"sub": account.id})
    return {"Authorization": f"Bearer {token}"}
