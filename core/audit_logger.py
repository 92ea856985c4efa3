import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from core.booking_store import BookingSnapshot, ConfirmationResult
from core.pricing import quantize_money
from db.models import ConfirmationAttempt, RentalBooking


def _card_last4(snapshot: BookingSnapshot) -> str:
    payment = snapshot.selection.payment
    return payment.last4 if payment else ""


class AuditLogger:
    """Append-only trail of confirmation attempts and confirmed rentals."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_confirmation_attempt(
        self,
        session_id: str,
        snapshot: BookingSnapshot,
        result: ConfirmationResult,
    ) -> ConfirmationAttempt:
        """Append a ConfirmationAttempt record. Never updates existing records."""
        record = ConfirmationAttempt(
            id=str(uuid.uuid4()),
            session_id=session_id,
            car_id=snapshot.car.id if snapshot.car else "",
            success=result.success,
            reason=result.reason.value if result.reason else None,
            message=result.message,
            booking_reference=result.booking_reference,
            total=quantize_money(snapshot.pricing.total),
            card_last4=_card_last4(snapshot),
        )
        self.db.add(record)
        await self.db.commit()
        return record

    async def log_booking(
        self,
        session_id: str,
        snapshot: BookingSnapshot,
        currency: str = "USD",
    ) -> RentalBooking:
        """Persist a confirmed rental from the store snapshot that was submitted."""
        search = snapshot.search
        selection = snapshot.selection
        pricing = snapshot.pricing
        driver = selection.primary_driver
        return_location = search.effective_return_location

        booking = RentalBooking(
            id=str(uuid.uuid4()),
            booking_reference=snapshot.booking_reference,
            session_id=session_id,
            car_id=snapshot.car.id,
            car_name=snapshot.car.name,
            pickup_location_code=search.pickup_location.code,
            return_location_code=return_location.code,
            pickup_date=search.pickup_date,
            return_date=search.return_date,
            rental_days=pricing.rental_days,
            driver_age=search.driver_age,
            protection_id=selection.protection.id.value,
            extras=[{"id": s.extra.id.value, "quantity": s.quantity} for s in selection.extras],
            driver_name=driver.full_name,
            driver_email=driver.email,
            card_last4=_card_last4(snapshot),
            pricing={
                "base_rate": str(pricing.base_rate),
                "protection_cost": str(pricing.protection_cost),
                "extras_cost": str(pricing.extras_cost),
                "young_driver_fee": str(pricing.young_driver_fee),
                "airport_fee": str(pricing.airport_fee),
                "taxes": str(pricing.taxes),
                "total": str(pricing.total),
            },
            total=quantize_money(pricing.total),
            currency=currency,
        )
        self.db.add(booking)
        await self.db.commit()
        return booking
