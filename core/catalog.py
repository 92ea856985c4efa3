"""Static protection and extras catalogs.

Entries are immutable and keyed by enum so a lookup either resolves to a real
catalog entry or raises CatalogLookupError; there is no silent "not found".
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple, Union


class CatalogLookupError(KeyError):
    """Raised when a protection or extra id is not in the static catalog."""


class ProtectionId(str, Enum):
    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"


class ExtraId(str, Enum):
    GPS = "gps"
    CHILD_SEAT_INFANT = "child_seat_infant"
    CHILD_SEAT_TODDLER = "child_seat_toddler"
    CHILD_SEAT_BOOSTER = "child_seat_booster"
    ADDITIONAL_DRIVER = "additional_driver"
    WIFI = "wifi"
    PREPAID_FUEL = "prepaid_fuel"


@dataclass(frozen=True)
class ProtectionPackage:
    id: ProtectionId
    name: str
    description: str
    price_per_day: Decimal
    excess_amount: Decimal
    coverage: Tuple[str, ...]
    recommended: bool = False


@dataclass(frozen=True)
class CarExtra:
    id: ExtraId
    name: str
    description: str
    price_per_day: Decimal
    max_quantity: int
    icon: str


PROTECTION_PACKAGES: Mapping[ProtectionId, ProtectionPackage] = MappingProxyType({
    ProtectionId.BASIC: ProtectionPackage(
        id=ProtectionId.BASIC,
        name="Basic",
        description="Standard coverage included with rental",
        price_per_day=Decimal("0"),
        excess_amount=Decimal("1500"),
        coverage=("Collision Damage Waiver", "Theft Protection"),
    ),
    ProtectionId.STANDARD: ProtectionPackage(
        id=ProtectionId.STANDARD,
        name="Standard",
        description="Reduced excess for peace of mind",
        price_per_day=Decimal("12"),
        excess_amount=Decimal("500"),
        coverage=("Collision Damage Waiver", "Theft Protection", "Reduced Excess"),
        recommended=True,
    ),
    ProtectionId.PREMIUM: ProtectionPackage(
        id=ProtectionId.PREMIUM,
        name="Premium",
        description="Full protection with zero excess",
        price_per_day=Decimal("22"),
        excess_amount=Decimal("0"),
        coverage=("Zero Excess", "Theft Protection", "Roadside Assistance", "Personal Accident"),
    ),
})

AVAILABLE_EXTRAS: Mapping[ExtraId, CarExtra] = MappingProxyType({
    ExtraId.GPS: CarExtra(ExtraId.GPS, "GPS Navigation", "Never get lost", Decimal("8"), 1, "gps"),
    ExtraId.CHILD_SEAT_INFANT: CarExtra(
        ExtraId.CHILD_SEAT_INFANT, "Infant Seat", "0-12 months", Decimal("10"), 2, "child"
    ),
    ExtraId.CHILD_SEAT_TODDLER: CarExtra(
        ExtraId.CHILD_SEAT_TODDLER, "Toddler Seat", "1-4 years", Decimal("10"), 2, "child"
    ),
    ExtraId.CHILD_SEAT_BOOSTER: CarExtra(
        ExtraId.CHILD_SEAT_BOOSTER, "Booster Seat", "4-8 years", Decimal("8"), 2, "child"
    ),
    ExtraId.ADDITIONAL_DRIVER: CarExtra(
        ExtraId.ADDITIONAL_DRIVER, "Additional Driver", "Add another driver", Decimal("12"), 3, "user"
    ),
    ExtraId.WIFI: CarExtra(ExtraId.WIFI, "WiFi Hotspot", "Stay connected", Decimal("10"), 1, "wifi"),
    ExtraId.PREPAID_FUEL: CarExtra(
        ExtraId.PREPAID_FUEL, "Prepaid Fuel", "Return empty, no refueling needed", Decimal("0"), 1, "fuel"
    ),
})

DEFAULT_PROTECTION = PROTECTION_PACKAGES[ProtectionId.BASIC]


def get_protection(protection_id: Union[ProtectionId, str]) -> ProtectionPackage:
    try:
        return PROTECTION_PACKAGES[ProtectionId(protection_id)]
    except ValueError:
        raise CatalogLookupError(f"Unknown protection package: '{protection_id}'") from None


def get_extra(extra_id: Union[ExtraId, str]) -> CarExtra:
    try:
        return AVAILABLE_EXTRAS[ExtraId(extra_id)]
    except ValueError:
        raise CatalogLookupError(f"Unknown extra: '{extra_id}'") from None
