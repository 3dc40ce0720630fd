"""
Booking allocation service: who may hold which hotel room.

ALLOCATION RULES
================

Create and update run the same ordered gauntlet, stopping at the first
failure:

  1. The target room exists (and, for update, the caller already holds a
     booking)                                             -> NotFoundError
  2. The caller is enrolled and, on create, has no booking yet; on update,
     the booking being moved is theirs                   -> UnauthorizedError
  3. The enrollment's ticket is paid, in-person and includes a hotel
                                                          -> IneligibleTicketError
  4. The room has a free slot                             -> CapacityExceededError

CONCURRENCY STRATEGY: Pessimistic Room Lock
===========================================

Problem:
  Two attendees ask for the last slot in a room at the same time.
  Both count N-1 bookings, both insert, the room ends up with N+1.

Solution:
  The room row is read with SELECT ... FOR UPDATE before anything else.
  A second request for the same room blocks on that read until the first
  transaction commits, and then counts the booking it just wrote.

  Contention is per room and allocations are short, so serializing them
  costs little. A user racing themselves across two rooms is stopped by the
  unique constraint on bookings.user_id, which the store reports as
  DuplicateBookingError and create_booking turns into UnauthorizedError.
"""

from typing import Optional

from hotel_booking.models import Booking, Enrollment, Room, TicketStatus
from hotel_booking.stores.interfaces import DuplicateBookingError, EntityStore
from hotel_booking.services.errors import (
    BookingErrorCode,
    CapacityExceededError,
    IneligibleTicketError,
    NotFoundError,
    UnauthorizedError,
)
from hotel_booking.core.logging import get_logger
from hotel_booking.core.metrics import booking_latency, record_booking_attempt

logger = get_logger(__name__)


async def get_booking_for_user(store: EntityStore, user_id: int) -> Booking:
    """Return the caller's booking with its room loaded."""
    booking = await store.find_booking_by_user(user_id)
    if not booking:
        raise NotFoundError(BookingErrorCode.BOOKING_NOT_FOUND, user_id=user_id)
    return booking


async def create_booking(store: EntityStore, user_id: int, room_id: int) -> Booking:
    """
    Place the caller in a room.

    Raises NotFoundError, UnauthorizedError, IneligibleTicketError or
    CapacityExceededError, in that order of precedence.
    """
    with booking_latency.labels(operation="create").time():
        room = await store.find_room(room_id, for_update=True)
        if not room:
            raise NotFoundError(BookingErrorCode.ROOM_NOT_FOUND, room_id=room_id)

        existing = await store.find_booking_by_user(user_id)
        if existing:
            raise UnauthorizedError(
                BookingErrorCode.BOOKING_ALREADY_EXISTS,
                booking_id=existing.id,
            )

        enrollment = await _require_enrollment(store, user_id)
        await check_ticket_eligibility(store, enrollment)
        await _ensure_vacancy(store, room)

        try:
            booking = await store.create_booking(user_id, room_id)
        except DuplicateBookingError:
            # Lost a race against another create by the same user.
            raise UnauthorizedError(BookingErrorCode.BOOKING_ALREADY_EXISTS, user_id=user_id)

    record_booking_attempt("create", "success")
    logger.info(
        "booking_created",
        booking_id=booking.id,
        user_id=user_id,
        room_id=room_id,
    )
    return booking


async def update_booking(
    store: EntityStore,
    booking_id: int,
    room_id: int,
    user_id: int,
) -> Booking:
    """
    Move the caller's booking to another room.

    A move into the room the booking already occupies is accepted even when
    that room is full: the booking being moved does not count against the
    capacity of its own room.
    """
    with booking_latency.labels(operation="update").time():
        room = await store.find_room(room_id, for_update=True)
        if not room:
            raise NotFoundError(BookingErrorCode.ROOM_NOT_FOUND, room_id=room_id)

        current = await store.find_booking_by_user(user_id)
        if not current:
            raise NotFoundError(BookingErrorCode.CALLER_HAS_NO_BOOKING, user_id=user_id)
        from_room_id = current.room_id

        enrollment = await _require_enrollment(store, user_id)

        target = await store.find_booking(booking_id)
        if not target:
            raise NotFoundError(BookingErrorCode.BOOKING_NOT_FOUND, booking_id=booking_id)
        if target.user_id != user_id:
            raise UnauthorizedError(
                BookingErrorCode.NOT_BOOKING_OWNER,
                booking_id=booking_id,
            )

        await check_ticket_eligibility(store, enrollment)
        await _ensure_vacancy(store, room, moving_booking_id=booking_id)

        booking = await store.update_booking_room(booking_id, room_id)

    record_booking_attempt("update", "success")
    logger.info(
        "booking_moved",
        booking_id=booking.id,
        user_id=user_id,
        from_room_id=from_room_id,
        to_room_id=room_id,
    )
    return booking


async def check_ticket_eligibility(store: EntityStore, enrollment: Enrollment) -> None:
    """Raise IneligibleTicketError unless the ticket grants a hotel stay."""
    ticket = await store.find_ticket_by_enrollment(enrollment.id)

    if not ticket:
        raise IneligibleTicketError(BookingErrorCode.TICKET_NOT_FOUND, enrollment_id=enrollment.id)
    if ticket.status == TicketStatus.RESERVED:
        raise IneligibleTicketError(BookingErrorCode.TICKET_NOT_PAID, ticket_id=ticket.id)
    if ticket.ticket_type.is_remote:
        raise IneligibleTicketError(BookingErrorCode.TICKET_IS_REMOTE, ticket_id=ticket.id)
    if not ticket.ticket_type.includes_hotel:
        raise IneligibleTicketError(BookingErrorCode.HOTEL_NOT_INCLUDED, ticket_id=ticket.id)


async def _require_enrollment(store: EntityStore, user_id: int) -> Enrollment:
    enrollment = await store.find_enrollment_by_user(user_id)
    if not enrollment:
        raise UnauthorizedError(BookingErrorCode.ENROLLMENT_NOT_FOUND, user_id=user_id)
    return enrollment


async def _ensure_vacancy(
    store: EntityStore,
    room: Room,
    moving_booking_id: Optional[int] = None,
) -> None:
    occupied = await store.count_bookings_in_room(room.id, exclude_booking_id=moving_booking_id)

    # An already overfilled room stays closed too.
    if occupied >= room.capacity:
        raise CapacityExceededError(
            BookingErrorCode.ROOM_AT_CAPACITY,
            room_id=room.id,
            capacity=room.capacity,
            occupied=occupied,
        )
