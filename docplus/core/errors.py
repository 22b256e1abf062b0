"""Booking domain errors.

Services raise these; ``docplus.main`` turns them into JSON responses at the
request boundary. None of them is fatal to the process.
"""


class BookingError(Exception):
    status_code: int = 400
    default_detail: str = "Request failed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFoundError(BookingError):
    status_code = 404
    default_detail = "Not found"


class UnavailableError(BookingError):
    status_code = 409
    default_detail = "Doctor is not available"


class SlotTakenError(BookingError):
    status_code = 409
    default_detail = "Slot not available"


class InvalidTransitionError(BookingError):
    status_code = 409
    default_detail = "Invalid appointment state transition"


class PaymentVerificationError(BookingError):
    status_code = 400
    default_detail = "Payment verification failed"


class UnauthorizedError(BookingError):
    status_code = 403
    default_detail = "Unauthorized action"


class ValidationError(BookingError):
    status_code = 422
    default_detail = "Missing or invalid details"


class PaymentGatewayError(BookingError):
    status_code = 502
    default_detail = "Payment gateway error"
