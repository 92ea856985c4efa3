"""Hertz car-rental gateway: real API integration.

Credentials come from settings (GATEWAY_CLIENT_ID / GATEWAY_CLIENT_SECRET).
Sandbox booking references are prefixed SANDBOX-.
"""
import asyncio
import logging
import time
from datetime import date
from decimal import Decimal
from typing import Any, Optional

import httpx

from core.config import settings
from core.pricing import quantize_money
from core.state import Car
from providers.base import (
    BaseBookingGateway,
    BaseCarCatalogProvider,
    BookingOutcome,
    BookingRequest,
    FailureReason,
    GatewayError,
)

logger = logging.getLogger(__name__)


class HertzClient:
    """OAuth2 client-credentials session with retry on 429."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._base_url = settings.gateway_base_url
        self._client_id = settings.gateway_client_id
        self._client_secret = settings.gateway_client_secret
        self._transport = transport
        self._token: Optional[str] = None
        self._token_expires_at: float = 0
        self.is_sandbox = settings.gateway_sandbox

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self._base_url, transport=self._transport)

    async def _ensure_token(self) -> str:
        if self._token and time.time() < self._token_expires_at:
            return self._token

        async with self._client() as client:
            resp = await client.post(
                "/oauth/token",
                data={
                    "grant_type": "client_credentials",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                },
            )
            resp.raise_for_status()
            data = resp.json()
            self._token = data["access_token"]
            self._token_expires_at = time.time() + data.get("expires_in", 3600) - 60
            return self._token

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Authenticated request. Returns the final response; the caller checks status."""
        token = await self._ensure_token()
        headers = {"Authorization": f"Bearer {token}"}
        max_retries = 3

        async with self._client() as client:
            for attempt in range(max_retries + 1):
                resp = await client.request(method, path, headers=headers, **kwargs)
                if resp.status_code == 429:
                    retry_after = int(resp.headers.get("retry-after", 2 ** attempt))
                    logger.warning("Hertz 429, retrying after %ds (attempt %d)", retry_after, attempt + 1)
                    await asyncio.sleep(retry_after)
                    continue
                return resp

        raise GatewayError("Hertz API: max retries exceeded on 429")


def _reservation_payload(request: BookingRequest) -> dict:
    search = request.search
    selection = request.selection
    driver = selection.primary_driver
    payment = selection.payment
    return_location = search.effective_return_location
    return {
        "vehicle_id": request.car.id,
        "pickup": {
            "location": search.pickup_location.code,
            "date": search.pickup_date.isoformat(),
            "time": search.pickup_time.strftime("%H:%M"),
        },
        "return": {
            "location": return_location.code if return_location else None,
            "date": search.return_date.isoformat(),
            "time": search.return_time.strftime("%H:%M"),
        },
        "driver_age": search.driver_age,
        "protection": selection.protection.id.value,
        "extras": [{"id": s.extra.id.value, "quantity": s.quantity} for s in selection.extras],
        "renter": {
            "first_name": driver.first_name,
            "last_name": driver.last_name,
            "email": driver.email,
            "phone": driver.phone,
            "license_number": driver.license_number,
            "license_country": driver.license_country,
        },
        "payment": {
            "card_number": payment.card_number.replace(" ", ""),
            "expiry": payment.expiry,
            "cvv": payment.cvv,
            "cardholder_name": payment.cardholder_name,
            "billing_zip": payment.zip_code,
            "billing_country": payment.country,
        },
        "quoted_total": str(quantize_money(request.pricing.total)),
        "currency": request.currency,
    }


def _json_object(resp: httpx.Response) -> Optional[dict]:
    """Decoded JSON body, or None when the body is not a JSON object."""
    try:
        body = resp.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


class HertzBookingGateway(BaseBookingGateway):
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._api = HertzClient(transport=transport)

    async def submit(self, request: BookingRequest) -> BookingOutcome:
        try:
            resp = await self._api.request("POST", "/reservations", json=_reservation_payload(request))
        except httpx.HTTPError as exc:
            raise GatewayError(f"Hertz API unreachable: {exc}") from exc

        body = _json_object(resp)
        if resp.status_code == 402:
            detail = (body or {}).get("message", "Payment declined")
            return BookingOutcome.failed(FailureReason.DECLINED, detail)
        if resp.status_code >= 400:
            raise GatewayError(f"Hertz API returned {resp.status_code}")
        if body is None or not body.get("confirmation_number"):
            raise GatewayError(f"Hertz API returned an unreadable reservation ({resp.status_code})")

        ref = body["confirmation_number"]
        if self._api.is_sandbox:
            ref = f"SANDBOX-{ref}"
        return BookingOutcome.confirmed(ref)


class HertzCarCatalogProvider(BaseCarCatalogProvider):
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._api = HertzClient(transport=transport)

    @staticmethod
    def _to_car(vehicle: dict) -> Car:
        return Car(
            id=vehicle.get("id", ""),
            name=vehicle.get("name", ""),
            price_per_day=Decimal(str(vehicle.get("rate", {}).get("amount", 0))),
            category=vehicle.get("category", "economy"),
            company="Hertz",
            transmission=vehicle.get("transmission", "automatic"),
            seats=int(vehicle.get("seats", 5)),
        )

    async def search_cars(
        self, pickup_code: str, pickup_date: date, return_date: date
    ) -> list[Car]:
        resp = await self._api.request("GET", "/vehicles/available", params={
            "pickup_location": pickup_code,
            "pickup_date": pickup_date.isoformat(),
            "return_date": return_date.isoformat(),
        })
        resp.raise_for_status()
        return [self._to_car(v) for v in resp.json().get("vehicles", [])]

    async def get_car(self, car_id: str) -> Optional[Car]:
        resp = await self._api.request("GET", f"/vehicles/{car_id}")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return self._to_car(resp.json())
