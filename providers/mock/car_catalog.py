from datetime import date
from decimal import Decimal
from typing import Optional

from core.state import Car
from providers.base import BaseCarCatalogProvider

MOCK_CARS = [
    Car(id="CAR001", name="Toyota Corolla", price_per_day=Decimal("45"),
        category="compact", company="Hertz", transmission="automatic", seats=5),
    Car(id="CAR002", name="Fiat 500", price_per_day=Decimal("32"),
        category="economy", company="Europcar", transmission="manual", seats=4),
    Car(id="CAR003", name="Ford Explorer", price_per_day=Decimal("89"),
        category="suv", company="Avis", transmission="automatic", seats=7),
    Car(id="CAR004", name="BMW 5 Series", price_per_day=Decimal("129"),
        category="luxury", company="Sixt", transmission="automatic", seats=5),
    Car(id="CAR005", name="VW Transporter", price_per_day=Decimal("110"),
        category="van", company="Hertz", transmission="manual", seats=9),
]


class MockCarCatalogProvider(BaseCarCatalogProvider):
    async def search_cars(
        self, pickup_code: str, pickup_date: date, return_date: date
    ) -> list[Car]:
        return list(MOCK_CARS)

    async def get_car(self, car_id: str) -> Optional[Car]:
        for car in MOCK_CARS:
            if car.id == car_id:
                return car
        return None
