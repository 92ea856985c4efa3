"""Search and selection state for the car-rental checkout.

Both ``SearchParams`` and ``Selection`` are immutable snapshots. Every
operation returns a new snapshot (or ``self`` when the call is a no-op), so
the store can swap state atomically and derived values can never go stale.
"""
import logging
from dataclasses import dataclass, replace
from datetime import date, time
from decimal import Decimal
from typing import Literal, Optional, Tuple, Union

from core.catalog import DEFAULT_PROTECTION, CarExtra, ExtraId, ProtectionPackage

logger = logging.getLogger(__name__)

MIN_DRIVER_AGE = 18
MAX_DRIVER_AGE = 99
DEFAULT_DRIVER_AGE = 25
DEFAULT_PICKUP_TIME = time(10, 0)
DEFAULT_RETURN_TIME = time(10, 0)


@dataclass(frozen=True)
class Location:
    id: str
    name: str
    code: str
    type: Literal["airport", "city"] = "city"

    @property
    def is_airport(self) -> bool:
        return self.type == "airport"


@dataclass(frozen=True)
class Car:
    id: str
    name: str
    price_per_day: Decimal
    category: str = "economy"
    company: str = ""
    transmission: Literal["automatic", "manual"] = "automatic"
    seats: int = 5


@dataclass(frozen=True)
class DriverInfo:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    date_of_birth: str = ""     # ISO 8601
    license_number: str = ""
    license_country: str = ""
    license_expiry: str = ""    # ISO 8601

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True, repr=False)
class PaymentData:
    """Payment profile held in memory only. Never log or persist it verbatim."""

    card_number: str
    expiry: str                 # MM/YY
    cvv: str
    cardholder_name: str
    billing_address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    @property
    def last4(self) -> str:
        digits = "".join(ch for ch in self.card_number if ch.isdigit())
        return digits[-4:]

    @property
    def masked_card_number(self) -> str:
        return f"•••• •••• •••• {self.last4}"

    def __repr__(self) -> str:
        return f"PaymentData(card={self.masked_card_number!r}, cardholder={self.cardholder_name!r})"


@dataclass(frozen=True)
class SelectedExtra:
    extra: CarExtra
    quantity: int = 1


@dataclass(frozen=True)
class SearchParams:
    pickup_location: Optional[Location] = None
    return_location: Optional[Location] = None
    same_return_location: bool = True
    pickup_date: Optional[date] = None
    pickup_time: time = DEFAULT_PICKUP_TIME
    return_date: Optional[date] = None
    return_time: time = DEFAULT_RETURN_TIME
    driver_age: int = DEFAULT_DRIVER_AGE

    def set_pickup_location(self, location: Location) -> "SearchParams":
        return replace(self, pickup_location=location)

    def set_return_location(self, location: Optional[Location]) -> "SearchParams":
        return replace(self, return_location=location)

    def set_same_return_location(self, same: bool) -> "SearchParams":
        return replace(
            self,
            same_return_location=same,
            return_location=None if same else self.return_location,
        )

    def set_pickup_date(self, pickup_date: date) -> "SearchParams":
        """Set the pickup date, pulling the return date forward if it would precede it."""
        return_date = self.return_date
        if return_date is not None and return_date < pickup_date:
            return_date = pickup_date
        return replace(self, pickup_date=pickup_date, return_date=return_date)

    def set_pickup_time(self, pickup_time: time) -> "SearchParams":
        return replace(self, pickup_time=pickup_time)

    def set_return_date(self, return_date: date) -> "SearchParams":
        """Set the return date, clamped to the pickup date as a minimum."""
        minimum = self.min_return_date()
        if minimum is not None and return_date < minimum:
            logger.debug("Return date %s precedes pickup %s, clamping", return_date, minimum)
            return_date = minimum
        return replace(self, return_date=return_date)

    def set_return_time(self, return_time: time) -> "SearchParams":
        return replace(self, return_time=return_time)

    def set_driver_age(self, age: int) -> "SearchParams":
        """Out-of-range ages are ignored; the stepper disables itself at the bounds."""
        if not MIN_DRIVER_AGE <= age <= MAX_DRIVER_AGE:
            logger.debug("Ignoring driver age %s outside [%s, %s]", age, MIN_DRIVER_AGE, MAX_DRIVER_AGE)
            return self
        return replace(self, driver_age=age)

    def step_driver_age(self, delta: int) -> "SearchParams":
        return self.set_driver_age(self.driver_age + delta)

    def min_return_date(self) -> Optional[date]:
        return self.pickup_date

    def is_search_valid(self) -> bool:
        return (
            self.pickup_location is not None
            and self.pickup_date is not None
            and self.return_date is not None
            and (self.same_return_location or self.return_location is not None)
        )

    @property
    def effective_return_location(self) -> Optional[Location]:
        if self.same_return_location:
            return self.pickup_location
        return self.return_location


@dataclass(frozen=True)
class Selection:
    protection: ProtectionPackage = DEFAULT_PROTECTION
    extras: Tuple[SelectedExtra, ...] = ()
    primary_driver: Optional[DriverInfo] = None
    payment: Optional[PaymentData] = None
    additional_drivers: Tuple[DriverInfo, ...] = ()

    def select_protection(self, package: ProtectionPackage) -> "Selection":
        return replace(self, protection=package)

    def toggle_extra(self, extra: CarExtra) -> "Selection":
        """Add the extra with quantity 1, or remove it (dropping its quantity) if present."""
        if self.find_extra(extra.id) is not None:
            remaining = tuple(s for s in self.extras if s.extra.id != extra.id)
            return replace(self, extras=remaining)
        return replace(self, extras=self.extras + (SelectedExtra(extra=extra, quantity=1),))

    def set_extra_quantity(self, extra_id: Union[ExtraId, str], quantity: int) -> "Selection":
        """Clamp ``quantity`` to [1, max_quantity]. No-op unless the extra is selected."""
        if self.find_extra(extra_id) is None:
            return self
        updated = tuple(
            replace(s, quantity=max(1, min(quantity, s.extra.max_quantity)))
            if s.extra.id == extra_id else s
            for s in self.extras
        )
        return replace(self, extras=updated)

    def set_primary_driver(self, driver: DriverInfo) -> "Selection":
        return replace(self, primary_driver=driver)

    def set_payment_data(self, payment: PaymentData) -> "Selection":
        return replace(self, payment=payment)

    def add_additional_driver(self, driver: DriverInfo) -> "Selection":
        return replace(self, additional_drivers=self.additional_drivers + (driver,))

    def remove_additional_driver(self, index: int) -> "Selection":
        if not 0 <= index < len(self.additional_drivers):
            return self
        drivers = self.additional_drivers[:index] + self.additional_drivers[index + 1:]
        return replace(self, additional_drivers=drivers)

    def find_extra(self, extra_id: Union[ExtraId, str]) -> Optional[SelectedExtra]:
        for selected in self.extras:
            if selected.extra.id == extra_id:
                return selected
        return None

    def total_extras_count(self) -> int:
        return sum(s.quantity for s in self.extras)
