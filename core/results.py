"""Search-result filtering and sorting for the car list."""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Literal, Tuple

from core.state import Car

SIZE_ORDER = ("economy", "compact", "midsize", "fullsize", "suv", "luxury", "van")


class SortOrder(str, Enum):
    RECOMMENDED = "recommended"
    PRICE = "price"
    SIZE = "size"


@dataclass(frozen=True)
class CarFilters:
    categories: Tuple[str, ...] = ()
    transmission: Literal["any", "automatic", "manual"] = "any"
    suppliers: Tuple[str, ...] = ()
    min_price: Decimal = Decimal("0")
    max_price: Decimal = Decimal("500")

    def matches(self, car: Car) -> bool:
        if self.categories and car.category not in self.categories:
            return False
        if self.transmission != "any" and car.transmission != self.transmission:
            return False
        if self.suppliers and car.company not in self.suppliers:
            return False
        return self.min_price <= car.price_per_day <= self.max_price


def _size_rank(car: Car) -> int:
    # Unknown categories sort last
    try:
        return SIZE_ORDER.index(car.category)
    except ValueError:
        return len(SIZE_ORDER)


def filter_results(
    cars: Iterable[Car],
    filters: CarFilters = CarFilters(),
    sort: SortOrder = SortOrder.RECOMMENDED,
) -> List[Car]:
    """Filter then sort. RECOMMENDED keeps the supplier's original ordering."""
    filtered = [car for car in cars if filters.matches(car)]
    if sort is SortOrder.PRICE:
        filtered.sort(key=lambda car: car.price_per_day)
    elif sort is SortOrder.SIZE:
        filtered.sort(key=_size_rank)
    return filtered
