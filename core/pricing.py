"""Pure price-quote derivation.

All amounts are ``Decimal`` so repeated recomputation never accumulates
float drift. Nothing here rounds; rounding happens once, in ``format_money``.
"""
from dataclasses import asdict, dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

from core.config import Settings, settings
from core.state import Car, SearchParams, Selection

ZERO = Decimal("0")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class PricingConfig:
    tax_rate: Decimal = Decimal("0.12")
    airport_fee: Decimal = Decimal("25")
    young_driver_age_threshold: int = 25
    young_driver_fee_per_day: Decimal = Decimal("15")
    apply_young_driver_fee: bool = False

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None) -> "PricingConfig":
        cfg = cfg or settings
        return cls(
            tax_rate=cfg.tax_rate,
            airport_fee=cfg.airport_fee,
            young_driver_age_threshold=cfg.young_driver_age_threshold,
            young_driver_fee_per_day=cfg.young_driver_fee_per_day,
            apply_young_driver_fee=cfg.apply_young_driver_fee,
        )


@dataclass(frozen=True)
class PricingBreakdown:
    rental_days: int
    base_rate: Decimal = ZERO
    protection_cost: Decimal = ZERO
    extras_cost: Decimal = ZERO
    young_driver_fee: Decimal = ZERO
    airport_fee: Decimal = ZERO
    taxes: Decimal = ZERO

    @property
    def subtotal(self) -> Decimal:
        return (
            self.base_rate
            + self.protection_cost
            + self.extras_cost
            + self.young_driver_fee
            + self.airport_fee
        )

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.taxes

    @property
    def per_day(self) -> Decimal:
        return self.total / self.rental_days

    def to_display_dict(self, currency: str = "USD") -> Dict[str, str]:
        """Rounded, human-facing view; the only place amounts are rounded."""
        amounts = asdict(self)
        days = amounts.pop("rental_days")
        amounts["total"] = self.total
        amounts["per_day"] = self.per_day
        result = {key: format_money(value, currency) for key, value in amounts.items()}
        result["rental_days"] = str(days)
        return result


def rental_days(pickup_date: Optional[date], return_date: Optional[date]) -> int:
    """Calendar-day difference, floored at 1. Missing dates count as a single day."""
    if pickup_date is None or return_date is None:
        return 1
    return max(1, (return_date - pickup_date).days)


def compute_pricing(
    car: Optional[Car],
    search: SearchParams,
    selection: Selection,
    config: Optional[PricingConfig] = None,
) -> PricingBreakdown:
    config = config or PricingConfig.from_settings()
    days = rental_days(search.pickup_date, search.return_date)
    if car is None:
        return PricingBreakdown(rental_days=days)

    base_rate = car.price_per_day * days
    protection_cost = selection.protection.price_per_day * days
    extras_cost = sum(
        (s.extra.price_per_day * s.quantity * days for s in selection.extras),
        ZERO,
    )

    young_driver_fee = ZERO
    if config.apply_young_driver_fee and search.driver_age < config.young_driver_age_threshold:
        young_driver_fee = config.young_driver_fee_per_day * days

    pickup = search.pickup_location
    airport_fee = config.airport_fee if pickup is not None and pickup.is_airport else ZERO

    taxable = base_rate + protection_cost + extras_cost + young_driver_fee + airport_fee
    return PricingBreakdown(
        rental_days=days,
        base_rate=base_rate,
        protection_cost=protection_cost,
        extras_cost=extras_cost,
        young_driver_fee=young_driver_fee,
        airport_fee=airport_fee,
        taxes=taxable * config.tax_rate,
    )


def quantize_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal, currency: str = "USD") -> str:
    symbol = "$" if currency == "USD" else f"{currency} "
    return f"{symbol}{quantize_money(amount):,.2f}"
