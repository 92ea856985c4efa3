from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query

from api.schemas import CarOut, ExtraOut, ProtectionOut
from core.catalog import AVAILABLE_EXTRAS, PROTECTION_PACKAGES
from core.results import CarFilters, SortOrder, filter_results
from providers.base import BaseCarCatalogProvider
from providers.factory import get_car_catalog

router = APIRouter(tags=["catalog"])


@router.get("/catalog/protection", response_model=list[ProtectionOut])
async def list_protection_packages():
    return [
        ProtectionOut(
            id=p.id.value,
            name=p.name,
            description=p.description,
            price_per_day=p.price_per_day,
            excess_amount=p.excess_amount,
            coverage=list(p.coverage),
            recommended=p.recommended,
        )
        for p in PROTECTION_PACKAGES.values()
    ]


@router.get("/catalog/extras", response_model=list[ExtraOut])
async def list_extras():
    return [
        ExtraOut(
            id=e.id.value,
            name=e.name,
            description=e.description,
            price_per_day=e.price_per_day,
            max_quantity=e.max_quantity,
            icon=e.icon,
        )
        for e in AVAILABLE_EXTRAS.values()
    ]


@router.get("/cars", response_model=list[CarOut])
async def search_cars(
    pickup_code: str,
    pickup_date: date,
    return_date: date,
    category: Optional[List[str]] = Query(None),
    supplier: Optional[List[str]] = Query(None),
    transmission: Literal["any", "automatic", "manual"] = "any",
    min_price: Decimal = Decimal("0"),
    max_price: Decimal = Decimal("500"),
    sort: SortOrder = SortOrder.RECOMMENDED,
    catalog: BaseCarCatalogProvider = Depends(get_car_catalog),
):
    cars = await catalog.search_cars(pickup_code, pickup_date, return_date)
    filters = CarFilters(
        categories=tuple(category or ()),
        transmission=transmission,
        suppliers=tuple(supplier or ()),
        min_price=min_price,
        max_price=max_price,
    )
    return [CarOut.model_validate(car) for car in filter_results(cars, filters, sort)]
