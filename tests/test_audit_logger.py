"""Tests for AuditLogger – append-only attempts and card-safe booking records."""
from dataclasses import replace
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from db.models import ConfirmationAttempt, RentalBooking
from providers.mock.booking_gateway import DECLINED_CARD, MockBookingGateway


@pytest.mark.asyncio
async def test_log_confirmation_attempt_creates_record(audit_logger, ready_store):
    result = await ready_store.confirm(MockBookingGateway())
    record = await audit_logger.log_confirmation_attempt("sess-1", ready_store.snapshot(), result)

    assert record.id
    assert record.success is True
    assert record.reason is None
    assert record.car_id == "CAR-TEST"
    assert record.booking_reference == result.booking_reference
    assert record.total == Decimal("189.00")
    assert record.card_last4 == "4242"


@pytest.mark.asyncio
async def test_attempts_are_append_only(db, audit_logger, ready_store, payment):
    ready_store.set_payment_data(replace(payment, card_number=DECLINED_CARD))
    declined = await ready_store.confirm(MockBookingGateway())
    r1 = await audit_logger.log_confirmation_attempt("sess-2", ready_store.snapshot(), declined)

    ready_store.set_payment_data(payment)
    confirmed = await ready_store.confirm(MockBookingGateway())
    r2 = await audit_logger.log_confirmation_attempt("sess-2", ready_store.snapshot(), confirmed)

    assert r1.id != r2.id
    assert r1.reason == "declined"
    assert r1.card_last4 == "0002"

    result = await db.execute(
        select(func.count()).select_from(ConfirmationAttempt).where(
            ConfirmationAttempt.session_id == "sess-2"
        )
    )
    assert result.scalar_one() == 2


@pytest.mark.asyncio
async def test_log_booking_creates_record(db, audit_logger, ready_store):
    ready_store.toggle_extra("gps")
    ready_store.select_protection("standard")
    await ready_store.confirm(MockBookingGateway())
    snapshot = ready_store.snapshot()

    booking = await audit_logger.log_booking("sess-3", snapshot, currency="USD")

    assert booking.booking_reference == snapshot.booking_reference
    assert booking.pickup_location_code == "LAX"
    assert booking.return_location_code == "LAX"
    assert booking.rental_days == 3
    assert booking.protection_id == "standard"
    assert booking.extras == [{"id": "gps", "quantity": 1}]
    assert booking.driver_name == "Alex Rivera"
    assert Decimal(booking.pricing["protection_cost"]) == Decimal("36")
    assert Decimal(booking.pricing["total"]) == snapshot.pricing.total

    stored = (await db.execute(
        select(RentalBooking).where(RentalBooking.booking_reference == snapshot.booking_reference)
    )).scalar_one()
    assert stored.id == booking.id


@pytest.mark.asyncio
async def test_booking_record_never_holds_full_card(audit_logger, ready_store):
    await ready_store.confirm(MockBookingGateway())
    booking = await audit_logger.log_booking("sess-4", ready_store.snapshot())

    values = " ".join(
        str(getattr(booking, col.name))
        for col in RentalBooking.__table__.columns
        if col.name != "created_at"
    )
    assert "4242424242424242" not in values
    assert "4242 4242 4242 4242" not in values
    assert "12/29" not in values
    assert booking.card_last4 == "4242"
