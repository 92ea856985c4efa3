import asyncio
import uuid

from providers.base import (
    BaseBookingGateway,
    BookingOutcome,
    BookingRequest,
    FailureReason,
    GatewayError,
)

# Well-known test card numbers
DECLINED_CARD = "4000000000000002"
PROCESSING_ERROR_CARD = "4000000000000119"


class MockBookingGateway(BaseBookingGateway):
    """Stand-in for the payment/booking service. Succeeds unless a test card says otherwise."""

    def __init__(self, delay_seconds: float = 0.0):
        self.delay_seconds = delay_seconds
        self.requests: list[BookingRequest] = []

    async def submit(self, request: BookingRequest) -> BookingOutcome:
        self.requests.append(request)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        card = request.selection.payment.card_number.replace(" ", "")
        if card == DECLINED_CARD:
            return BookingOutcome.failed(FailureReason.DECLINED, "Card declined by issuer")
        if card == PROCESSING_ERROR_CARD:
            raise GatewayError("Payment processor unavailable")

        return BookingOutcome.confirmed(f"MOCK-{request.car.id}-{uuid.uuid4().hex[:6].upper()}")
