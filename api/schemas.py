from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


# ── Catalog ────────────────────────────────────────────────────────────────────

class ProtectionOut(BaseModel):
    id: str
    name: str
    description: str
    price_per_day: Decimal
    excess_amount: Decimal
    coverage: List[str]
    recommended: bool


class ExtraOut(BaseModel):
    id: str
    name: str
    description: str
    price_per_day: Decimal
    max_quantity: int
    icon: str


class CarOut(BaseModel):
    id: str
    name: str
    price_per_day: Decimal
    category: str
    company: str
    transmission: str
    seats: int

    model_config = {"from_attributes": True}


# ── Checkout inputs ────────────────────────────────────────────────────────────

class LocationIn(BaseModel):
    id: str
    name: str
    code: str
    type: Literal["airport", "city"] = "city"


class CheckoutCreate(BaseModel):
    car_id: Optional[str] = None


class SearchUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""
    pickup_location: Optional[LocationIn] = None
    return_location: Optional[LocationIn] = None
    same_return_location: Optional[bool] = None
    pickup_date: Optional[date] = None
    pickup_time: Optional[time] = None
    return_date: Optional[date] = None
    return_time: Optional[time] = None
    driver_age: Optional[int] = None


class DriverAgeStep(BaseModel):
    delta: int = Field(..., ge=-1, le=1)


class CarSelect(BaseModel):
    car_id: str


class ProtectionSelect(BaseModel):
    protection_id: str


class ExtraQuantity(BaseModel):
    quantity: int


class DriverIn(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    date_of_birth: str = ""
    license_number: str = ""
    license_country: str = ""
    license_expiry: str = ""


class PaymentIn(BaseModel):
    card_number: str
    expiry: str
    cvv: str
    cardholder_name: str
    billing_address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""


# ── Checkout outputs ───────────────────────────────────────────────────────────

class LocationOut(BaseModel):
    id: str
    name: str
    code: str
    type: str

    model_config = {"from_attributes": True}


class SearchOut(BaseModel):
    pickup_location: Optional[LocationOut] = None
    return_location: Optional[LocationOut] = None
    same_return_location: bool
    pickup_date: Optional[date] = None
    pickup_time: time
    return_date: Optional[date] = None
    return_time: time
    driver_age: int
    min_return_date: Optional[date] = None


class SelectedExtraOut(BaseModel):
    id: str
    name: str
    quantity: int
    max_quantity: int


class DriverOut(DriverIn):
    model_config = {"from_attributes": True}


class PaymentOut(BaseModel):
    """Masked view of the payment profile; full card data never leaves the store."""
    masked_card_number: str
    cardholder_name: str
    expiry: str


class SelectionOut(BaseModel):
    protection_id: str
    extras: List[SelectedExtraOut] = []
    extras_count: int = 0
    primary_driver: Optional[DriverOut] = None
    additional_drivers: List[DriverOut] = []
    payment: Optional[PaymentOut] = None


class PricingOut(BaseModel):
    rental_days: int
    base_rate: Decimal
    protection_cost: Decimal
    extras_cost: Decimal
    young_driver_fee: Decimal
    airport_fee: Decimal
    taxes: Decimal
    total: Decimal
    per_day: Decimal
    currency: str


class GatesOut(BaseModel):
    is_search_valid: bool
    is_driver_complete: bool
    is_payment_complete: bool
    can_confirm: bool
    can_submit: bool


class ConfirmationOut(BaseModel):
    success: bool
    status: str
    booking_reference: Optional[str] = None
    reason: Optional[str] = None
    message: str = ""


class CheckoutRead(BaseModel):
    session_id: str
    status: str
    car: Optional[CarOut] = None
    search: SearchOut
    selection: SelectionOut
    pricing: PricingOut
    gates: GatesOut
    booking_reference: Optional[str] = None
    last_result: Optional[ConfirmationOut] = None
    form_errors: Dict[str, Dict[str, str]] = {}


class CancelOut(BaseModel):
    cancelled: bool


# ── Bookings ───────────────────────────────────────────────────────────────────

class BookingOut(BaseModel):
    id: str
    booking_reference: str
    car_id: str
    car_name: str
    pickup_location_code: str
    return_location_code: str
    pickup_date: date
    return_date: date
    rental_days: int
    protection_id: str
    extras: List[Dict[str, object]] = []
    driver_name: str
    card_last4: str
    total: Decimal
    currency: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
