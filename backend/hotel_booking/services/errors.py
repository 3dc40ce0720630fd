"""Domain errors raised by the booking allocation service.

Every rejection carries a precise ``BookingErrorCode`` for logs and metrics,
while the exception class carries the coarse kind the API maps onto an HTTP
status. Several codes deliberately share a kind: a caller who already holds a
booking and a caller without an enrollment are both ``UnauthorizedError``.
"""

from enum import Enum


class BookingErrorCode(str, Enum):
    """Reason a booking request was rejected."""

    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    CALLER_HAS_NO_BOOKING = "CALLER_HAS_NO_BOOKING"

    BOOKING_ALREADY_EXISTS = "BOOKING_ALREADY_EXISTS"
    ENROLLMENT_NOT_FOUND = "ENROLLMENT_NOT_FOUND"
    NOT_BOOKING_OWNER = "NOT_BOOKING_OWNER"

    TICKET_NOT_FOUND = "TICKET_NOT_FOUND"
    TICKET_NOT_PAID = "TICKET_NOT_PAID"
    TICKET_IS_REMOTE = "TICKET_IS_REMOTE"
    HOTEL_NOT_INCLUDED = "HOTEL_NOT_INCLUDED"

    ROOM_AT_CAPACITY = "ROOM_AT_CAPACITY"


class BookingError(Exception):
    """Base class for booking rejections."""

    kind = "booking_error"

    def __init__(self, code: BookingErrorCode, **details) -> None:
        self.code = code
        self.details = details
        super().__init__(code.value)

    def __str__(self) -> str:
        return f"{self.kind}: {self.code.value}"


class NotFoundError(BookingError):
    """A referenced room or booking does not exist."""

    kind = "not_found"


class UnauthorizedError(BookingError):
    """The caller lacks a precondition for the operation."""

    kind = "unauthorized"


class IneligibleTicketError(BookingError):
    """The caller's ticket does not entitle them to a hotel room."""

    kind = "ineligible_ticket"


class CapacityExceededError(BookingError):
    """The target room is full."""

    kind = "capacity_exceeded"
