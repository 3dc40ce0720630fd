"""
Translation of booking rejections into HTTP responses.

Failures are answered with a bare status code; the reason code goes to the
logs and metrics only.
"""

from fastapi import Request, Response, status

from hotel_booking.services.errors import (
    BookingError,
    CapacityExceededError,
    IneligibleTicketError,
    NotFoundError,
    UnauthorizedError,
)
from hotel_booking.core.logging import get_logger
from hotel_booking.core.metrics import record_booking_attempt

logger = get_logger(__name__)

STATUS_BY_ERROR: dict[type[BookingError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    UnauthorizedError: status.HTTP_401_UNAUTHORIZED,
    IneligibleTicketError: status.HTTP_401_UNAUTHORIZED,
    CapacityExceededError: status.HTTP_403_FORBIDDEN,
}

OPERATION_BY_METHOD = {"GET": "retrieve", "POST": "create", "PUT": "update"}


def status_for(exc: BookingError) -> int:
    return STATUS_BY_ERROR[type(exc)]


async def booking_error_handler(request: Request, exc: BookingError) -> Response:
    status_code = status_for(exc)
    operation = OPERATION_BY_METHOD.get(request.method, request.method.lower())

    record_booking_attempt(operation, exc.kind)
    logger.info(
        "booking_rejected",
        operation=operation,
        kind=exc.kind,
        code=exc.code.value,
        status_code=status_code,
        **exc.details,
    )
    return Response(status_code=status_code)
