from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas import BookingOut
from db.database import get_db
from db.models import RentalBooking

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("/{booking_reference}", response_model=BookingOut)
async def get_booking(booking_reference: str, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(RentalBooking).where(RentalBooking.booking_reference == booking_reference)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking
