import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, Index, Integer, JSON, Numeric, String
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    pass


class RentalBooking(Base):
    """A confirmed rental. Payment data is never stored beyond the card's last four digits."""

    __tablename__ = "rental_bookings"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    booking_reference = Column(String, unique=True, nullable=False)
    session_id = Column(String, nullable=False)
    car_id = Column(String, nullable=False)
    car_name = Column(String, nullable=False)
    pickup_location_code = Column(String, nullable=False)
    return_location_code = Column(String, nullable=False)
    pickup_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=False)
    rental_days = Column(Integer, nullable=False)
    driver_age = Column(Integer, nullable=False)
    protection_id = Column(String, nullable=False)
    # [{"id": "gps", "quantity": 1}, ...]
    extras = Column(JSON, nullable=False, default=list)
    driver_name = Column(String, nullable=False)
    driver_email = Column(String, nullable=False)
    card_last4 = Column(String(4), nullable=False)
    # Line items as exact decimal strings, keyed like PricingBreakdown
    pricing = Column(JSON, nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ConfirmationAttempt(Base):
    """Append-only record of every confirm submission and its outcome."""

    __tablename__ = "confirmation_attempts"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id = Column(String, nullable=False)
    car_id = Column(String, nullable=False)
    success = Column(Boolean, nullable=False)
    # declined | network | timeout | cancelled (null on success)
    reason = Column(String, nullable=True)
    message = Column(String, nullable=False, default="")
    booking_reference = Column(String, nullable=True)
    total = Column(Numeric(12, 2), nullable=False)
    card_last4 = Column(String(4), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


Index("ix_attempts_session", ConfirmationAttempt.session_id)
