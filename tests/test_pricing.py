"""Tests for the pure pricing calculator."""
from datetime import date, timedelta
from decimal import Decimal

import pytest

from core.catalog import PROTECTION_PACKAGES, CarExtra, ExtraId, ProtectionId
from core.pricing import PricingConfig, compute_pricing, format_money, rental_days
from core.state import SearchParams, Selection

PICKUP = date(2025, 3, 1)
RETURN = date(2025, 3, 4)

GPS_10 = CarExtra(ExtraId.GPS, "GPS Navigation", "Never get lost", Decimal("10"), 1, "gps")


def _search(location, pickup=PICKUP, ret=RETURN, **kwargs):
    return SearchParams(pickup_location=location, pickup_date=pickup, return_date=ret, **kwargs)


def _line_item_sum(p):
    return p.base_rate + p.protection_cost + p.extras_cost + p.young_driver_fee + p.airport_fee + p.taxes


# ── rental_days ───────────────────────────────────────────────────────────────

@pytest.mark.parametrize("offset", [-3, -1, 0, 1, 2, 3, 7, 30])
def test_rental_days_is_calendar_difference_floored_at_one(offset):
    assert rental_days(PICKUP, PICKUP + timedelta(days=offset)) == max(1, offset)


def test_rental_days_defaults_to_one_without_dates():
    assert rental_days(None, RETURN) == 1
    assert rental_days(PICKUP, None) == 1
    assert rental_days(None, None) == 1


def test_rental_days_crosses_month_boundary():
    assert rental_days(date(2025, 2, 27), date(2025, 3, 2)) == 3


# ── Scenarios ─────────────────────────────────────────────────────────────────

def test_airport_scenario_basic_protection(car, airport, pricing_config):
    p = compute_pricing(car, _search(airport), Selection(), pricing_config)

    assert p.rental_days == 3
    assert p.base_rate == Decimal("150")
    assert p.protection_cost == 0
    assert p.extras_cost == 0
    assert p.airport_fee == Decimal("25")
    assert p.taxes == Decimal("0.08") * (Decimal("150") + Decimal("25"))
    assert p.total == Decimal("150") + Decimal("25") + p.taxes
    assert p.total == Decimal("189")


def test_gps_extra_is_taxed(car, airport, pricing_config):
    without = compute_pricing(car, _search(airport), Selection(), pricing_config)
    with_gps = compute_pricing(car, _search(airport), Selection().toggle_extra(GPS_10), pricing_config)

    assert with_gps.extras_cost == Decimal("30")
    assert with_gps.total - without.total == Decimal("30") * Decimal("1.08")


def test_city_pickup_has_no_airport_fee(car, downtown, pricing_config):
    p = compute_pricing(car, _search(downtown), Selection(), pricing_config)
    assert p.airport_fee == 0
    assert p.total == Decimal("150") * Decimal("1.08")


def test_protection_cost_scales_with_days(car, downtown, pricing_config):
    selection = Selection().select_protection(PROTECTION_PACKAGES[ProtectionId.PREMIUM])
    p = compute_pricing(car, _search(downtown), selection, pricing_config)
    assert p.protection_cost == Decimal("66")


def test_extras_cost_multiplies_quantity(car, downtown, pricing_config):
    infant = CarExtra(ExtraId.CHILD_SEAT_INFANT, "Infant Seat", "", Decimal("10"), 2, "child")
    selection = Selection().toggle_extra(infant).set_extra_quantity(ExtraId.CHILD_SEAT_INFANT, 2)
    p = compute_pricing(car, _search(downtown), selection, pricing_config)
    assert p.extras_cost == Decimal("60")


def test_same_day_rental_charges_one_day(car, downtown, pricing_config):
    p = compute_pricing(car, _search(downtown, ret=PICKUP), Selection(), pricing_config)
    assert p.rental_days == 1
    assert p.base_rate == Decimal("50")


def test_total_is_exact_sum_of_line_items(car, airport):
    config = PricingConfig(tax_rate=Decimal("0.0725"), airport_fee=Decimal("19.99"))
    selection = (
        Selection()
        .select_protection(PROTECTION_PACKAGES[ProtectionId.STANDARD])
        .toggle_extra(GPS_10)
    )
    for days in range(1, 15):
        p = compute_pricing(car, _search(airport, ret=PICKUP + timedelta(days=days)), selection, config)
        assert p.total == _line_item_sum(p)
        assert all(
            amount >= 0
            for amount in (p.base_rate, p.protection_cost, p.extras_cost, p.airport_fee, p.taxes, p.total)
        )


def test_recomputation_is_stable(car, airport, pricing_config):
    search = _search(airport)
    first = compute_pricing(car, search, Selection(), pricing_config)
    for _ in range(50):
        assert compute_pricing(car, search, Selection(), pricing_config) == first


def test_no_car_yields_zero_quote(airport, pricing_config):
    p = compute_pricing(None, _search(airport), Selection(), pricing_config)
    assert p.rental_days == 3
    assert p.total == 0
    assert p.airport_fee == 0


# ── Young-driver fee ──────────────────────────────────────────────────────────

def test_young_driver_fee_off_by_default(car, downtown, pricing_config):
    p = compute_pricing(car, _search(downtown, driver_age=21), Selection(), pricing_config)
    assert p.young_driver_fee == 0


def test_young_driver_fee_when_enabled(car, downtown):
    config = PricingConfig(tax_rate=Decimal("0.08"), apply_young_driver_fee=True)
    young = compute_pricing(car, _search(downtown, driver_age=21), Selection(), config)
    adult = compute_pricing(car, _search(downtown, driver_age=25), Selection(), config)

    assert young.young_driver_fee == Decimal("45")
    assert adult.young_driver_fee == 0
    assert young.total - adult.total == Decimal("45") * Decimal("1.08")
    assert young.total == _line_item_sum(young)


# ── Display ───────────────────────────────────────────────────────────────────

def test_format_money_rounds_half_up():
    assert format_money(Decimal("14.005")) == "$14.01"
    assert format_money(Decimal("1234.5")) == "$1,234.50"
    assert format_money(Decimal("10"), "EUR") == "EUR 10.00"


def test_display_dict_rounds_only_at_display(car, airport):
    config = PricingConfig(tax_rate=Decimal("0.0725"), airport_fee=Decimal("25"))
    p = compute_pricing(car, _search(airport), Selection(), config)
    display = p.to_display_dict()

    assert p.taxes == Decimal("12.6875")
    assert display["taxes"] == "$12.69"
    assert display["total"] == "$187.69"
    assert display["rental_days"] == "3"


def test_per_day(car, downtown, pricing_config):
    p = compute_pricing(car, _search(downtown), Selection(), pricing_config)
    assert p.per_day == p.total / 3
