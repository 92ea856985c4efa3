import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas import (
    CancelOut,
    CarOut,
    CarSelect,
    CheckoutCreate,
    CheckoutRead,
    ConfirmationOut,
    DriverAgeStep,
    DriverIn,
    DriverOut,
    ExtraQuantity,
    GatesOut,
    LocationIn,
    LocationOut,
    PaymentIn,
    PaymentOut,
    PricingOut,
    ProtectionSelect,
    SearchOut,
    SearchUpdate,
    SelectedExtraOut,
    SelectionOut,
)
from core.audit_logger import AuditLogger
from core.booking_store import CheckoutNotReadyError, ConfirmationResult
from core.catalog import CatalogLookupError
from core.event_bus import TERMINAL_EVENTS, EventBus
from core.gates import driver_form_errors, payment_form_errors
from core.pricing import quantize_money
from core.sessions import CheckoutSession, SessionNotFoundError, SessionRegistry
from core.state import DriverInfo, Location, PaymentData
from db.database import get_db
from providers.base import BaseBookingGateway, BaseCarCatalogProvider
from providers.factory import get_booking_gateway, get_car_catalog

router = APIRouter(prefix="/checkout", tags=["checkout"])
logger = logging.getLogger(__name__)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _session_or_404(session_id: str) -> CheckoutSession:
    try:
        return SessionRegistry.get(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


def _location(body: LocationIn) -> Location:
    return Location(id=body.id, name=body.name, code=body.code, type=body.type)


def _result_out(result: ConfirmationResult) -> ConfirmationOut:
    return ConfirmationOut(
        success=result.success,
        status=result.status.value,
        booking_reference=result.booking_reference,
        reason=result.reason.value if result.reason else None,
        message=result.message,
    )


def _to_read(session: CheckoutSession) -> CheckoutRead:
    store = session.store
    snap = store.snapshot()
    search = snap.search
    selection = snap.selection
    pricing = snap.pricing

    form_errors = {}
    if selection.primary_driver is not None:
        form_errors["driver"] = driver_form_errors(selection.primary_driver)
    if selection.payment is not None:
        form_errors["payment"] = payment_form_errors(selection.payment)

    return CheckoutRead(
        session_id=session.session_id,
        status=snap.status.value,
        car=CarOut.model_validate(snap.car) if snap.car else None,
        search=SearchOut(
            pickup_location=LocationOut.model_validate(search.pickup_location) if search.pickup_location else None,
            return_location=LocationOut.model_validate(search.return_location) if search.return_location else None,
            same_return_location=search.same_return_location,
            pickup_date=search.pickup_date,
            pickup_time=search.pickup_time,
            return_date=search.return_date,
            return_time=search.return_time,
            driver_age=search.driver_age,
            min_return_date=search.min_return_date(),
        ),
        selection=SelectionOut(
            protection_id=selection.protection.id.value,
            extras=[
                SelectedExtraOut(
                    id=s.extra.id.value,
                    name=s.extra.name,
                    quantity=s.quantity,
                    max_quantity=s.extra.max_quantity,
                )
                for s in selection.extras
            ],
            extras_count=selection.total_extras_count(),
            primary_driver=DriverOut.model_validate(selection.primary_driver) if selection.primary_driver else None,
            additional_drivers=[DriverOut.model_validate(d) for d in selection.additional_drivers],
            payment=PaymentOut(
                masked_card_number=selection.payment.masked_card_number,
                cardholder_name=selection.payment.cardholder_name,
                expiry=selection.payment.expiry,
            ) if selection.payment else None,
        ),
        pricing=PricingOut(
            rental_days=pricing.rental_days,
            base_rate=quantize_money(pricing.base_rate),
            protection_cost=quantize_money(pricing.protection_cost),
            extras_cost=quantize_money(pricing.extras_cost),
            young_driver_fee=quantize_money(pricing.young_driver_fee),
            airport_fee=quantize_money(pricing.airport_fee),
            taxes=quantize_money(pricing.taxes),
            total=quantize_money(pricing.total),
            per_day=quantize_money(pricing.per_day),
            currency=store.currency,
        ),
        gates=GatesOut(
            is_search_valid=snap.is_search_valid,
            is_driver_complete=snap.is_driver_complete,
            is_payment_complete=snap.is_payment_complete,
            can_confirm=snap.can_confirm,
            can_submit=store.can_submit(),
        ),
        booking_reference=snap.booking_reference,
        last_result=_result_out(snap.last_result) if snap.last_result else None,
        form_errors=form_errors,
    )


async def _car_or_404(catalog: BaseCarCatalogProvider, car_id: str):
    car = await catalog.get_car(car_id)
    if car is None:
        raise HTTPException(status_code=404, detail=f"Car '{car_id}' not found")
    return car


# ── Endpoints ─────────────────────────────────────────────────────────────────

@router.post("", response_model=CheckoutRead, status_code=201)
async def create_checkout(
    body: CheckoutCreate,
    catalog: BaseCarCatalogProvider = Depends(get_car_catalog),
):
    car = await _car_or_404(catalog, body.car_id) if body.car_id else None
    session = SessionRegistry.create()
    if car is not None:
        session.store.select_car(car)
    return _to_read(session)


@router.get("/{session_id}", response_model=CheckoutRead)
async def get_checkout(session_id: str):
    return _to_read(_session_or_404(session_id))


@router.delete("/{session_id}", status_code=204)
async def close_checkout(session_id: str):
    _session_or_404(session_id)
    SessionRegistry.close(session_id)
    return Response(status_code=204)


@router.patch("/{session_id}/search", response_model=CheckoutRead)
async def update_search(session_id: str, body: SearchUpdate):
    session = _session_or_404(session_id)
    store = session.store
    fields = body.model_fields_set

    if "pickup_location" in fields and body.pickup_location is not None:
        store.set_pickup_location(_location(body.pickup_location))
    if "same_return_location" in fields and body.same_return_location is not None:
        store.set_same_return_location(body.same_return_location)
    if "return_location" in fields:
        store.set_return_location(_location(body.return_location) if body.return_location else None)
    if "pickup_date" in fields and body.pickup_date is not None:
        store.set_pickup_date(body.pickup_date)
    if "return_date" in fields and body.return_date is not None:
        store.set_return_date(body.return_date)
    if "pickup_time" in fields and body.pickup_time is not None:
        store.set_pickup_time(body.pickup_time)
    if "return_time" in fields and body.return_time is not None:
        store.set_return_time(body.return_time)
    if "driver_age" in fields and body.driver_age is not None:
        store.set_driver_age(body.driver_age)
    return _to_read(session)


@router.post("/{session_id}/driver-age/step", response_model=CheckoutRead)
async def step_driver_age(session_id: str, body: DriverAgeStep):
    session = _session_or_404(session_id)
    session.store.step_driver_age(body.delta)
    return _to_read(session)


@router.put("/{session_id}/car", response_model=CheckoutRead)
async def select_car(
    session_id: str,
    body: CarSelect,
    catalog: BaseCarCatalogProvider = Depends(get_car_catalog),
):
    session = _session_or_404(session_id)
    session.store.select_car(await _car_or_404(catalog, body.car_id))
    return _to_read(session)


@router.put("/{session_id}/protection", response_model=CheckoutRead)
async def select_protection(session_id: str, body: ProtectionSelect):
    session = _session_or_404(session_id)
    try:
        session.store.select_protection(body.protection_id)
    except CatalogLookupError as exc:
        raise HTTPException(status_code=404, detail=exc.args[0])
    return _to_read(session)


@router.post("/{session_id}/extras/{extra_id}/toggle", response_model=CheckoutRead)
async def toggle_extra(session_id: str, extra_id: str):
    session = _session_or_404(session_id)
    try:
        session.store.toggle_extra(extra_id)
    except CatalogLookupError as exc:
        raise HTTPException(status_code=404, detail=exc.args[0])
    return _to_read(session)


@router.put("/{session_id}/extras/{extra_id}/quantity", response_model=CheckoutRead)
async def set_extra_quantity(session_id: str, extra_id: str, body: ExtraQuantity):
    session = _session_or_404(session_id)
    session.store.set_extra_quantity(extra_id, body.quantity)
    return _to_read(session)


@router.put("/{session_id}/driver", response_model=CheckoutRead)
async def set_primary_driver(session_id: str, body: DriverIn):
    session = _session_or_404(session_id)
    session.store.set_primary_driver(DriverInfo(**body.model_dump()))
    return _to_read(session)


@router.post("/{session_id}/additional-drivers", response_model=CheckoutRead)
async def add_additional_driver(session_id: str, body: DriverIn):
    session = _session_or_404(session_id)
    session.store.add_additional_driver(DriverInfo(**body.model_dump()))
    return _to_read(session)


@router.delete("/{session_id}/additional-drivers/{index}", response_model=CheckoutRead)
async def remove_additional_driver(session_id: str, index: int):
    session = _session_or_404(session_id)
    session.store.remove_additional_driver(index)
    return _to_read(session)


@router.put("/{session_id}/payment", response_model=CheckoutRead)
async def set_payment_data(session_id: str, body: PaymentIn):
    session = _session_or_404(session_id)
    session.store.set_payment_data(PaymentData(**body.model_dump()))
    return _to_read(session)


@router.post("/{session_id}/confirm", response_model=ConfirmationOut)
async def confirm_booking(
    session_id: str,
    gateway: BaseBookingGateway = Depends(get_booking_gateway),
    db: AsyncSession = Depends(get_db),
):
    session = _session_or_404(session_id)
    store = session.store
    try:
        result = await store.confirm(gateway)
    except CheckoutNotReadyError as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    snapshot = store.snapshot()
    audit_logger = AuditLogger(db)
    await audit_logger.log_confirmation_attempt(session_id, snapshot, result)
    if result.success:
        await audit_logger.log_booking(session_id, snapshot, currency=store.currency)
    return _result_out(result)


@router.post("/{session_id}/cancel", response_model=CancelOut)
async def cancel_confirmation(session_id: str):
    session = _session_or_404(session_id)
    return CancelOut(cancelled=session.store.cancel_confirmation())


@router.post("/{session_id}/reset", response_model=CheckoutRead)
async def reset_checkout(session_id: str):
    session = _session_or_404(session_id)
    session.store.reset()
    return _to_read(session)


@router.get("/{session_id}/events")
async def checkout_events(session_id: str):
    """SSE stream of store updates for UI surfaces that re-render on change."""
    _session_or_404(session_id)

    async def event_stream():
        bus = EventBus.get_or_create(session_id)
        bus.subscribe()
        try:
            while True:
                event = await bus.consume(timeout=30.0)
                if event is None:
                    yield f"data: {json.dumps({'type': 'heartbeat'})}\n\n"
                    continue

                yield f"data: {json.dumps(event)}\n\n"

                if event.get("type") in TERMINAL_EVENTS:
                    break
        finally:
            bus.unsubscribe()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
