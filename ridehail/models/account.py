# ridehail/models/account.py
import uuid

from sqlalchemy import Column, String, Float, Integer, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from ridehail.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------- ACCOUNT (AUTH TABLE) ----------------
class Account(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_type = Column(String(20), nullable=False)  # PASSENGER | DRIVER | PARTNER | ADMIN
    email = Column(String(190), unique=True, index=True)
    phone_e164 = Column(String(32), unique=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    avatar_url = Column(String(500))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    driver_profile = relationship("DriverProfile", back_populates="account", uselist=False, cascade="all, delete-orphan")
    passenger_profile = relationship("PassengerProfile", back_populates="account", uselist=False, cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts).strip()


# ---------------- DRIVER PROFILE ----------------
class DriverProfile(Base):
    __tablename__ = "driver_profiles"

    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True)
    license_number = Column(String(64))
    verification_state = Column(String(20), default="PENDING", nullable=False)

    # Ratings received as a driver (PASSENGER_TO_DRIVER rows)
    rating_avg = Column(Float, default=0.0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    account = relationship("Account", back_populates="driver_profile")


# ---------------- PASSENGER PROFILE ----------------
class PassengerProfile(Base):
    __tablename__ = "passenger_profiles"

    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True)

    # Ratings received as a passenger (DRIVER_TO_PASSENGER rows)
    rating_avg = Column(Float, default=0.0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    account = relationship("Account", back_populates="passenger_profile")
