"""BookingStore: the single owner of checkout state.

Holds the immutable ``SearchParams`` / ``Selection`` snapshots and the
selected car. Every mutator swaps in a new snapshot and notifies subscribers;
pricing and gates are derived on read. The confirm flow is the only async
path:

    incomplete -> ready_to_confirm -> processing -> confirmed
                        ^                 |
                        +---- failure ----+

While processing (and once confirmed) mutators are ignored so the quote sent
to the gateway cannot change underneath it.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Callable, List, Optional, Union

from core.catalog import CarExtra, ExtraId, ProtectionId, ProtectionPackage, get_extra, get_protection
from core.config import settings
from core.gates import (
    CheckoutStatus,
    can_submit,
    is_driver_complete,
    is_payment_complete,
    readiness_status,
)
from core.pricing import PricingBreakdown, PricingConfig, compute_pricing, rental_days
from core.state import Car, DriverInfo, Location, PaymentData, SearchParams, Selection
from providers.base import (
    BaseBookingGateway,
    BookingOutcome,
    BookingRequest,
    FailureReason,
    GatewayError,
)

logger = logging.getLogger(__name__)


class CheckoutNotReadyError(Exception):
    """Raised when confirm is invoked while the confirm control should be disabled."""


@dataclass(frozen=True)
class ConfirmationResult:
    success: bool
    status: CheckoutStatus
    booking_reference: Optional[str] = None
    reason: Optional[FailureReason] = None
    message: str = ""


@dataclass(frozen=True)
class BookingSnapshot:
    search: SearchParams
    selection: Selection
    car: Optional[Car]
    pricing: PricingBreakdown
    status: CheckoutStatus
    is_search_valid: bool
    is_driver_complete: bool
    is_payment_complete: bool
    can_confirm: bool
    booking_reference: Optional[str] = None
    last_result: Optional[ConfirmationResult] = None


Listener = Callable[[BookingSnapshot], None]


class BookingStore:
    def __init__(
        self,
        pricing_config: Optional[PricingConfig] = None,
        timeout_seconds: Optional[float] = None,
        currency: Optional[str] = None,
    ):
        self._pricing_config = pricing_config or PricingConfig.from_settings()
        self._timeout = timeout_seconds if timeout_seconds is not None else settings.booking_timeout_seconds
        self.currency = currency or settings.currency
        self._search = SearchParams()
        self._selection = Selection()
        self._car: Optional[Car] = None
        # Only PROCESSING / CONFIRMED are stored; the other states are derived
        self._phase: Optional[CheckoutStatus] = None
        self._booking_reference: Optional[str] = None
        self._last_result: Optional[ConfirmationResult] = None
        self._inflight: Optional[asyncio.Future] = None
        self._cancel_requested = False
        self._listeners: List[Listener] = []

    # ── Read side ────────────────────────────────────────────────────────────

    @property
    def search(self) -> SearchParams:
        return self._search

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def car(self) -> Optional[Car]:
        return self._car

    @property
    def booking_reference(self) -> Optional[str]:
        return self._booking_reference

    @property
    def last_result(self) -> Optional[ConfirmationResult]:
        return self._last_result

    @property
    def status(self) -> CheckoutStatus:
        if self._phase is not None:
            return self._phase
        return readiness_status(self._selection)

    @property
    def pricing(self) -> PricingBreakdown:
        return self.calculate_pricing()

    def get_rental_days(self) -> int:
        return rental_days(self._search.pickup_date, self._search.return_date)

    def calculate_pricing(self) -> PricingBreakdown:
        return compute_pricing(self._car, self._search, self._selection, self._pricing_config)

    def is_search_valid(self) -> bool:
        return self._search.is_search_valid()

    def is_driver_complete(self) -> bool:
        return is_driver_complete(self._selection.primary_driver)

    def is_payment_complete(self) -> bool:
        return is_payment_complete(self._selection.payment)

    def can_confirm(self) -> bool:
        return self.is_driver_complete() and self.is_payment_complete()

    def can_submit(self) -> bool:
        return can_submit(self.status)

    def snapshot(self) -> BookingSnapshot:
        return BookingSnapshot(
            search=self._search,
            selection=self._selection,
            car=self._car,
            pricing=self.calculate_pricing(),
            status=self.status,
            is_search_valid=self.is_search_valid(),
            is_driver_complete=self.is_driver_complete(),
            is_payment_complete=self.is_payment_complete(),
            can_confirm=self.can_confirm(),
            booking_reference=self._booking_reference,
            last_result=self._last_result,
        )

    # ── Subscribers ──────────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("BookingStore listener %r failed", listener)

    # ── Mutators ─────────────────────────────────────────────────────────────

    def _is_locked(self, action: str) -> bool:
        if self._phase is not None:
            logger.warning("Ignoring %s while checkout is %s", action, self._phase.value)
            return True
        return False

    def _applied(self) -> None:
        # A failed result only describes the attempt it came from
        self._last_result = None
        self._notify()

    def _update_search(self, action: str, op: Callable[[SearchParams], SearchParams]) -> bool:
        if self._is_locked(action):
            return False
        updated = op(self._search)
        if updated is self._search:
            return False
        self._search = updated
        self._applied()
        return True

    def _update_selection(self, action: str, op: Callable[[Selection], Selection]) -> bool:
        if self._is_locked(action):
            return False
        updated = op(self._selection)
        if updated is self._selection:
            return False
        self._selection = updated
        self._applied()
        return True

    def set_pickup_location(self, location: Location) -> None:
        self._update_search("set_pickup_location", lambda s: s.set_pickup_location(location))

    def set_return_location(self, location: Optional[Location]) -> None:
        self._update_search("set_return_location", lambda s: s.set_return_location(location))

    def set_same_return_location(self, same: bool) -> None:
        self._update_search("set_same_return_location", lambda s: s.set_same_return_location(same))

    def set_pickup_date(self, pickup_date: date) -> None:
        self._update_search("set_pickup_date", lambda s: s.set_pickup_date(pickup_date))

    def set_pickup_time(self, pickup_time: time) -> None:
        self._update_search("set_pickup_time", lambda s: s.set_pickup_time(pickup_time))

    def set_return_date(self, return_date: date) -> None:
        self._update_search("set_return_date", lambda s: s.set_return_date(return_date))

    def set_return_time(self, return_time: time) -> None:
        self._update_search("set_return_time", lambda s: s.set_return_time(return_time))

    def set_driver_age(self, age: int) -> None:
        self._update_search("set_driver_age", lambda s: s.set_driver_age(age))

    def step_driver_age(self, delta: int) -> None:
        self._update_search("step_driver_age", lambda s: s.step_driver_age(delta))

    def select_car(self, car: Car) -> None:
        if self._is_locked("select_car"):
            return
        self._car = car
        self._applied()

    def select_protection(self, package: Union[ProtectionPackage, ProtectionId, str]) -> None:
        if not isinstance(package, ProtectionPackage):
            package = get_protection(package)
        self._update_selection("select_protection", lambda s: s.select_protection(package))

    def toggle_extra(self, extra: Union[CarExtra, ExtraId, str]) -> None:
        if not isinstance(extra, CarExtra):
            extra = get_extra(extra)
        self._update_selection("toggle_extra", lambda s: s.toggle_extra(extra))

    def set_extra_quantity(self, extra_id: Union[ExtraId, str], quantity: int) -> None:
        self._update_selection(
            "set_extra_quantity", lambda s: s.set_extra_quantity(extra_id, quantity)
        )

    def set_primary_driver(self, driver: DriverInfo) -> None:
        self._update_selection("set_primary_driver", lambda s: s.set_primary_driver(driver))

    def set_payment_data(self, payment: PaymentData) -> None:
        if self._update_selection("set_payment_data", lambda s: s.set_payment_data(payment)):
            logger.info("Payment profile saved for card %s", payment.masked_card_number)

    def add_additional_driver(self, driver: DriverInfo) -> None:
        self._update_selection("add_additional_driver", lambda s: s.add_additional_driver(driver))

    def remove_additional_driver(self, index: int) -> None:
        self._update_selection(
            "remove_additional_driver", lambda s: s.remove_additional_driver(index)
        )

    def reset(self) -> None:
        """Start a fresh booking flow. Refused while a confirmation is in flight."""
        if self._phase is CheckoutStatus.PROCESSING:
            logger.warning("Ignoring reset while checkout is processing")
            return
        self._search = SearchParams()
        self._selection = Selection()
        self._car = None
        self._phase = None
        self._booking_reference = None
        self._last_result = None
        self._notify()

    # ── Confirm flow ─────────────────────────────────────────────────────────

    async def confirm(self, gateway: BaseBookingGateway) -> ConfirmationResult:
        """Submit the finalized booking and resolve to confirmed or back to ready.

        Raises CheckoutNotReadyError if the confirm control should be disabled
        (gates not satisfied, already processing, or already confirmed), or if
        there is no car or complete search to book.
        """
        status = self.status
        if not can_submit(status):
            raise CheckoutNotReadyError(f"Cannot confirm booking while checkout is {status.value}")
        if self._car is None:
            raise CheckoutNotReadyError("Cannot confirm booking without a selected car")
        if not self.is_search_valid():
            raise CheckoutNotReadyError("Cannot confirm booking without complete search parameters")

        request = BookingRequest(
            car=self._car,
            search=self._search,
            selection=self._selection,
            pricing=self.calculate_pricing(),
            currency=self.currency,
        )
        self._phase = CheckoutStatus.PROCESSING
        self._cancel_requested = False
        self._last_result = None
        self._notify()
        logger.info(
            "Submitting booking for car %s (%s days, total=%s, card=%s)",
            request.car.id,
            request.pricing.rental_days,
            request.pricing.total,
            request.selection.payment.masked_card_number,
        )

        self._inflight = asyncio.ensure_future(gateway.submit(request))
        try:
            outcome = await asyncio.wait_for(self._inflight, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("Booking gateway timed out after %ss", self._timeout)
            outcome = BookingOutcome.failed(FailureReason.TIMEOUT, "Booking gateway did not respond in time")
        except asyncio.CancelledError:
            if not self._cancel_requested:
                self._phase = None
                raise
            logger.info("Booking confirmation cancelled by user")
            outcome = BookingOutcome.failed(FailureReason.CANCELLED, "Confirmation cancelled")
        except (GatewayError, ConnectionError) as exc:
            logger.error("Booking gateway call failed: %s", exc)
            outcome = BookingOutcome.failed(FailureReason.NETWORK, str(exc))
        except Exception as exc:
            logger.exception("Booking gateway raised an unexpected error")
            outcome = BookingOutcome.failed(FailureReason.NETWORK, f"Booking could not be completed: {exc}")
        finally:
            self._inflight = None

        return self._finish(outcome)

    def cancel_confirmation(self) -> bool:
        """Cancel an in-flight confirmation. Returns False if nothing was in flight."""
        if self._phase is not CheckoutStatus.PROCESSING or self._inflight is None:
            return False
        if self._inflight.done():
            return False
        self._cancel_requested = True
        self._inflight.cancel()
        return True

    def _finish(self, outcome: BookingOutcome) -> ConfirmationResult:
        if outcome.success:
            self._phase = CheckoutStatus.CONFIRMED
            self._booking_reference = outcome.booking_reference
            logger.info("Booking confirmed: %s", outcome.booking_reference)
        else:
            self._phase = None
            logger.warning(
                "Booking failed (%s): %s", outcome.reason.value if outcome.reason else "unknown", outcome.message
            )

        result = ConfirmationResult(
            success=outcome.success,
            status=self.status,
            booking_reference=outcome.booking_reference,
            reason=outcome.reason,
            message=outcome.message,
        )
        self._last_result = result
        self._notify()
        return result
