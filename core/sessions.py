"""In-process registry of checkout sessions, one BookingStore each.

Each session has exactly one writer at a time (its UI), so the registry
needs no locking beyond the single-threaded event loop.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from core.booking_store import BookingStore
from core.event_bus import EventBus

logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    """Raised when a checkout session id is unknown or has been closed."""


@dataclass
class CheckoutSession:
    session_id: str
    store: BookingStore
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _unsubscribe: Optional[Callable[[], None]] = field(default=None, repr=False)


class SessionRegistry:
    _sessions: Dict[str, CheckoutSession] = {}

    @classmethod
    def create(cls, store: Optional[BookingStore] = None) -> CheckoutSession:
        session_id = str(uuid.uuid4())
        store = store or BookingStore()
        bus = EventBus.get_or_create(session_id)
        session = CheckoutSession(
            session_id=session_id,
            store=store,
            _unsubscribe=store.subscribe(bus.publish_snapshot),
        )
        cls._sessions[session_id] = session
        logger.debug("Checkout session %s created", session_id)
        return session

    @classmethod
    def get(cls, session_id: str) -> CheckoutSession:
        session = cls._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Checkout session '{session_id}' not found")
        return session

    @classmethod
    def close(cls, session_id: str) -> None:
        session = cls._sessions.pop(session_id, None)
        if session is None:
            return
        if session._unsubscribe:
            session._unsubscribe()
        EventBus.remove(session_id)
        logger.debug("Checkout session %s closed", session_id)

    @classmethod
    def clear(cls) -> None:
        for session_id in list(cls._sessions):
            cls.close(session_id)
