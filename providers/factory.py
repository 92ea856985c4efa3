"""Collaborator factory: returns Mock or Real providers based on settings.use_real_apis."""
from core.config import settings
from providers.base import BaseBookingGateway, BaseCarCatalogProvider


def get_booking_gateway() -> BaseBookingGateway:
    if settings.use_real_apis:
        from providers.real.hertz import HertzBookingGateway
        return HertzBookingGateway()
    from providers.mock.booking_gateway import MockBookingGateway
    return MockBookingGateway()


def get_car_catalog() -> BaseCarCatalogProvider:
    if settings.use_real_apis:
        from providers.real.hertz import HertzCarCatalogProvider
        return HertzCarCatalogProvider()
    from providers.mock.car_catalog import MockCarCatalogProvider
    return MockCarCatalogProvider()
