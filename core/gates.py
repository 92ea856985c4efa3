"""Checkout readiness gates.

Gates are pure predicates over the current snapshots. They are evaluated on
every read and never cached, so they cannot drift from the state they guard.
The ``*_form_errors`` helpers mirror the entry-time checks the driver and
payment sheets apply; they are advisory and never feed into the gates.
"""
import re
from enum import Enum
from typing import Dict, Optional

from core.state import DriverInfo, PaymentData, SearchParams, Selection

_EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/\d{2}$")


class CheckoutStatus(str, Enum):
    INCOMPLETE = "incomplete"
    READY_TO_CONFIRM = "ready_to_confirm"
    PROCESSING = "processing"
    CONFIRMED = "confirmed"


def is_search_valid(search: SearchParams) -> bool:
    return search.is_search_valid()


def is_driver_complete(driver: Optional[DriverInfo]) -> bool:
    return driver is not None and all(
        (driver.first_name, driver.last_name, driver.email, driver.license_number)
    )


def is_payment_complete(payment: Optional[PaymentData]) -> bool:
    return payment is not None


def can_confirm(selection: Selection) -> bool:
    return is_driver_complete(selection.primary_driver) and is_payment_complete(selection.payment)


def can_submit(status: CheckoutStatus) -> bool:
    """The confirm control is live only in READY_TO_CONFIRM; PROCESSING overrides can_confirm."""
    return status is CheckoutStatus.READY_TO_CONFIRM


def readiness_status(selection: Selection) -> CheckoutStatus:
    if can_confirm(selection):
        return CheckoutStatus.READY_TO_CONFIRM
    return CheckoutStatus.INCOMPLETE


def driver_form_errors(driver: DriverInfo) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if len(driver.first_name) < 2:
        errors["first_name"] = "First name must be at least 2 characters"
    if len(driver.last_name) < 2:
        errors["last_name"] = "Last name must be at least 2 characters"
    if "@" not in driver.email:
        errors["email"] = "Enter a valid email address"
    if len(driver.phone) < 7:
        errors["phone"] = "Phone number must be at least 7 digits"
    if len(driver.date_of_birth) < 8:
        errors["date_of_birth"] = "Enter a date of birth"
    if len(driver.license_number) < 5:
        errors["license_number"] = "License number must be at least 5 characters"
    if len(driver.license_expiry) < 8:
        errors["license_expiry"] = "Enter the license expiry date"
    return errors


def payment_form_errors(payment: PaymentData) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if len(payment.card_number.replace(" ", "")) != 16:
        errors["card_number"] = "Card number must be 16 digits"
    if not _EXPIRY_RE.match(payment.expiry):
        errors["expiry"] = "Expiry must be MM/YY"
    if len(payment.cvv) < 3:
        errors["cvv"] = "CVV must be at least 3 digits"
    if len(payment.cardholder_name.strip()) < 2:
        errors["cardholder_name"] = "Enter the name on the card"
    if len(payment.billing_address.strip()) < 5:
        errors["billing_address"] = "Enter a billing address"
    if len(payment.city.strip()) < 2:
        errors["city"] = "Enter a city"
    if len(payment.zip_code.strip()) < 5:
        errors["zip_code"] = "ZIP code must be at least 5 characters"
    if len(payment.country.strip()) < 2:
        errors["country"] = "Enter a country"
    return errors
