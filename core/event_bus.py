"""EventBus for streaming checkout updates to UI clients.

One asyncio.Queue per checkout session. The BookingStore pushes a summary
after every mutation, the SSE handler consumes. Events are silently
discarded when nobody is listening.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from core.booking_store import BookingSnapshot
from core.gates import CheckoutStatus
from core.pricing import quantize_money

logger = logging.getLogger(__name__)

TERMINAL_EVENTS = ("booking_confirmed",)


def snapshot_event(snapshot: BookingSnapshot) -> Dict[str, Any]:
    """Compact, payment-free summary of a store snapshot."""
    event_type = "checkout_updated"
    result = snapshot.last_result
    if snapshot.status is CheckoutStatus.CONFIRMED:
        event_type = "booking_confirmed"
    elif result is not None and not result.success:
        event_type = "booking_failed"

    event: Dict[str, Any] = {
        "type": event_type,
        "status": snapshot.status.value,
        "can_confirm": snapshot.can_confirm,
        "is_search_valid": snapshot.is_search_valid,
        "rental_days": snapshot.pricing.rental_days,
        "total": str(quantize_money(snapshot.pricing.total)),
    }
    if snapshot.booking_reference:
        event["booking_reference"] = snapshot.booking_reference
    if event_type == "booking_failed":
        event["reason"] = result.reason.value if result.reason else None
        event["message"] = result.message
    return event


class EventBus:
    """Per-session event queue for real-time streaming."""

    _buses: Dict[str, "EventBus"] = {}

    def __init__(self, session_id: str):
        self.session_id = session_id
        self._queue: asyncio.Queue = asyncio.Queue()
        self._subscribers: int = 0

    @classmethod
    def get_or_create(cls, session_id: str) -> "EventBus":
        if session_id not in cls._buses:
            cls._buses[session_id] = cls(session_id)
        return cls._buses[session_id]

    @classmethod
    def remove(cls, session_id: str) -> None:
        cls._buses.pop(session_id, None)

    def subscribe(self) -> None:
        self._subscribers += 1

    def unsubscribe(self) -> None:
        self._subscribers = max(0, self._subscribers - 1)
        if self._subscribers == 0:
            while not self._queue.empty():
                try:
                    self._queue.get_nowait()
                except asyncio.QueueEmpty:
                    break

    def publish(self, event: Dict[str, Any]) -> None:
        """Push event to queue. Silently discards if no subscribers."""
        if self._subscribers > 0:
            try:
                self._queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("EventBus queue full for session %s, dropping event", self.session_id)

    def publish_snapshot(self, snapshot: BookingSnapshot) -> None:
        self.publish(snapshot_event(snapshot))

    async def consume(self, timeout: float = 30.0) -> Optional[Dict[str, Any]]:
        """Consume next event. Returns None on timeout."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
