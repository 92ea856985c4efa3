"""Collaborator interfaces the checkout engine calls out to."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Optional

from core.state import Car

if TYPE_CHECKING:
    from core.pricing import PricingBreakdown
    from core.state import SearchParams, Selection


class FailureReason(str, Enum):
    DECLINED = "declined"
    NETWORK = "network"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class GatewayError(Exception):
    """Raised by a gateway when the booking call could not be completed at all."""


@dataclass(frozen=True)
class BookingRequest:
    car: Car
    search: "SearchParams"
    selection: "Selection"
    pricing: "PricingBreakdown"
    currency: str = "USD"


@dataclass(frozen=True)
class BookingOutcome:
    success: bool
    booking_reference: Optional[str] = None
    reason: Optional[FailureReason] = None
    message: str = ""

    @classmethod
    def confirmed(cls, booking_reference: str) -> "BookingOutcome":
        return cls(success=True, booking_reference=booking_reference)

    @classmethod
    def failed(cls, reason: FailureReason, message: str = "") -> "BookingOutcome":
        return cls(success=False, reason=reason, message=message)


class BaseBookingGateway(ABC):
    """Payment/booking collaborator. Receives the finalized quote on confirm."""

    @abstractmethod
    async def submit(self, request: BookingRequest) -> BookingOutcome:
        pass


class BaseCarCatalogProvider(ABC):
    """Supplies the Car objects priced by the engine."""

    @abstractmethod
    async def search_cars(
        self, pickup_code: str, pickup_date: date, return_date: date
    ) -> list[Car]:
        pass

    @abstractmethod
    async def get_car(self, car_id: str) -> Optional[Car]:
        pass
