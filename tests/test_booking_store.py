"""Tests for BookingStore mutators, derived state, and subscribers."""
from datetime import date
from decimal import Decimal

import pytest

from core.booking_store import BookingStore
from core.catalog import CatalogLookupError, ExtraId, ProtectionId
from core.gates import CheckoutStatus


def test_fresh_store_state(store):
    assert store.status is CheckoutStatus.INCOMPLETE
    assert store.get_rental_days() == 1
    assert store.pricing.total == 0
    assert not store.is_search_valid()
    assert not store.can_confirm()
    assert store.selection.protection.id is ProtectionId.BASIC


def test_pricing_follows_every_mutation(store, car, airport):
    store.select_car(car)
    store.set_pickup_location(airport)
    store.set_pickup_date(date(2025, 3, 1))
    store.set_return_date(date(2025, 3, 4))
    assert store.calculate_pricing().total == Decimal("189")

    store.select_protection(ProtectionId.STANDARD)
    assert store.pricing.protection_cost == Decimal("36")

    store.set_return_date(date(2025, 3, 5))
    assert store.get_rental_days() == 4
    assert store.pricing.protection_cost == Decimal("48")


def test_toggle_extra_round_trip_restores_cost(store, car, airport):
    store.select_car(car)
    store.set_pickup_location(airport)
    store.set_pickup_date(date(2025, 3, 1))
    store.set_return_date(date(2025, 3, 4))
    before = store.pricing

    store.toggle_extra(ExtraId.WIFI)
    assert store.pricing.extras_cost == Decimal("30")
    store.toggle_extra(ExtraId.WIFI)

    assert store.pricing.extras_cost == before.extras_cost
    assert store.pricing == before
    assert store.selection.find_extra(ExtraId.WIFI) is None


def test_set_extra_quantity_clamped_through_store(store):
    store.toggle_extra("child_seat_toddler")
    store.set_extra_quantity("child_seat_toddler", 9)
    assert store.selection.find_extra(ExtraId.CHILD_SEAT_TODDLER).quantity == 2
    store.set_extra_quantity("child_seat_toddler", 0)
    assert store.selection.find_extra(ExtraId.CHILD_SEAT_TODDLER).quantity == 1


def test_unknown_catalog_ids_raise(store):
    with pytest.raises(CatalogLookupError):
        store.toggle_extra("jetpack")
    with pytest.raises(CatalogLookupError):
        store.select_protection("platinum")


def test_driver_age_scenario(store):
    store.set_driver_age(17)
    assert store.search.driver_age == 25
    store.set_driver_age(18)
    assert store.search.driver_age == 18
    store.step_driver_age(-1)
    assert store.search.driver_age == 18


def test_gates_never_stale(store, driver, payment):
    store.set_primary_driver(driver)
    assert store.is_driver_complete()
    assert store.status is CheckoutStatus.INCOMPLETE

    store.set_payment_data(payment)
    assert store.can_confirm()
    assert store.status is CheckoutStatus.READY_TO_CONFIRM

    store.set_primary_driver(type(driver)(first_name="Only"))
    assert not store.can_confirm()
    assert store.status is CheckoutStatus.INCOMPLETE


def test_subscribers_receive_derived_snapshot(store, car, airport):
    seen = []
    store.subscribe(seen.append)

    store.select_car(car)
    store.set_pickup_location(airport)

    assert len(seen) == 2
    assert seen[-1].car == car
    assert seen[-1].pricing.airport_fee == Decimal("25")
    assert seen[-1].pricing == store.pricing


def test_noop_mutation_does_not_notify(store):
    seen = []
    store.subscribe(seen.append)
    store.set_driver_age(150)
    store.set_extra_quantity(ExtraId.GPS, 1)
    store.remove_additional_driver(3)
    assert seen == []


def test_unsubscribe(store):
    seen = []
    unsubscribe = store.subscribe(seen.append)
    store.set_driver_age(30)
    unsubscribe()
    store.set_driver_age(31)
    assert len(seen) == 1
    unsubscribe()


def test_failing_listener_does_not_block_others(store):
    seen = []

    def broken(_snapshot):
        raise RuntimeError("render failed")

    store.subscribe(broken)
    store.subscribe(seen.append)
    store.set_driver_age(40)

    assert store.search.driver_age == 40
    assert len(seen) == 1


def test_snapshot_matches_queries(ready_store):
    snap = ready_store.snapshot()
    assert snap.status is CheckoutStatus.READY_TO_CONFIRM
    assert snap.is_search_valid
    assert snap.can_confirm
    assert snap.pricing == ready_store.calculate_pricing()


def test_reset_returns_to_defaults(ready_store):
    ready_store.toggle_extra(ExtraId.GPS)
    ready_store.reset()
    assert ready_store.car is None
    assert ready_store.selection.extras == ()
    assert ready_store.selection.primary_driver is None
    assert ready_store.search.driver_age == 25
    assert ready_store.status is CheckoutStatus.INCOMPLETE


def test_store_defaults_from_settings():
    store = BookingStore()
    assert store.currency == "USD"
