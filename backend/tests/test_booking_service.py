"""
Unit tests for the booking allocation rules, run against InMemoryEntityStore.
"""

import pytest

from hotel_booking.models import TicketStatus
from hotel_booking.services.booking_service import (
    create_booking,
    get_booking_for_user,
    update_booking,
)
from hotel_booking.services.errors import (
    BookingErrorCode,
    CapacityExceededError,
    IneligibleTicketError,
    NotFoundError,
    UnauthorizedError,
)
from hotel_booking.stores import DuplicateBookingError

USER_ID = 1
OTHER_USER_ID = 2

INELIGIBLE_TICKETS = [
    pytest.param(
        dict(status=None), BookingErrorCode.TICKET_NOT_FOUND, id="no-ticket"
    ),
    pytest.param(
        dict(status=TicketStatus.RESERVED), BookingErrorCode.TICKET_NOT_PAID, id="reserved"
    ),
    pytest.param(
        dict(is_remote=True), BookingErrorCode.TICKET_IS_REMOTE, id="remote"
    ),
    pytest.param(
        dict(includes_hotel=False), BookingErrorCode.HOTEL_NOT_INCLUDED, id="no-hotel"
    ),
]


@pytest.mark.asyncio
async def test_get_booking_returns_booking(store):
    room = store.add_room()
    booking = store.add_booking(USER_ID, room)

    found = await get_booking_for_user(store, USER_ID)

    assert found.id == booking.id
    assert found.room_id == room.id


@pytest.mark.asyncio
async def test_get_booking_without_booking_raises_not_found(store):
    store.add_booking(OTHER_USER_ID, store.add_room())

    with pytest.raises(NotFoundError):
        await get_booking_for_user(store, USER_ID)


@pytest.mark.asyncio
async def test_create_booking(store):
    room = store.add_room(capacity=2)
    store.enroll(USER_ID)

    booking = await create_booking(store, USER_ID, room.id)

    assert booking.user_id == USER_ID
    assert booking.room_id == room.id
    assert (await get_booking_for_user(store, USER_ID)).id == booking.id


@pytest.mark.asyncio
async def test_create_locks_room_before_counting(store):
    room = store.add_room()
    store.enroll(USER_ID)

    await create_booking(store, USER_ID, room.id)

    assert store.locked_rooms == [room.id]


@pytest.mark.asyncio
async def test_create_unknown_room_wins_over_every_other_failure(store):
    # Already booked, and no enrollment: the missing room is still reported.
    store.add_booking(USER_ID, store.add_room())

    with pytest.raises(NotFoundError) as exc_info:
        await create_booking(store, USER_ID, 999)

    assert exc_info.value.code == BookingErrorCode.ROOM_NOT_FOUND


@pytest.mark.asyncio
async def test_create_with_existing_booking_is_unauthorized_even_with_vacancy(store):
    room = store.add_room(capacity=5)
    store.enroll(USER_ID)
    store.add_booking(USER_ID, room)

    with pytest.raises(UnauthorizedError) as exc_info:
        await create_booking(store, USER_ID, room.id)

    assert exc_info.value.code == BookingErrorCode.BOOKING_ALREADY_EXISTS


@pytest.mark.asyncio
async def test_create_losing_duplicate_race_is_unauthorized(store, monkeypatch):
    room = store.add_room()
    store.enroll(USER_ID)

    async def duplicate(user_id, room_id):
        raise DuplicateBookingError(user_id)

    monkeypatch.setattr(store, "create_booking", duplicate)

    with pytest.raises(UnauthorizedError) as exc_info:
        await create_booking(store, USER_ID, room.id)

    assert exc_info.value.code == BookingErrorCode.BOOKING_ALREADY_EXISTS


@pytest.mark.asyncio
async def test_create_without_enrollment_is_unauthorized(store):
    room = store.add_room()

    with pytest.raises(UnauthorizedError) as exc_info:
        await create_booking(store, USER_ID, room.id)

    assert exc_info.value.code == BookingErrorCode.ENROLLMENT_NOT_FOUND


@pytest.mark.asyncio
@pytest.mark.parametrize("ticket, code", INELIGIBLE_TICKETS)
async def test_create_with_ineligible_ticket(store, ticket, code):
    room = store.add_room()
    store.enroll(USER_ID, **ticket)

    with pytest.raises(IneligibleTicketError) as exc_info:
        await create_booking(store, USER_ID, room.id)

    assert exc_info.value.code == code
    assert store.bookings == {}


@pytest.mark.asyncio
async def test_create_checks_ticket_before_capacity(store):
    room = store.add_room(capacity=1)
    store.add_booking(OTHER_USER_ID, room)
    store.enroll(USER_ID, is_remote=True)

    with pytest.raises(IneligibleTicketError):
        await create_booking(store, USER_ID, room.id)


@pytest.mark.asyncio
async def test_create_in_full_room_raises_capacity_exceeded(store):
    room = store.add_room(capacity=2)
    store.add_booking(10, room)
    store.add_booking(11, room)
    store.enroll(USER_ID)

    with pytest.raises(CapacityExceededError) as exc_info:
        await create_booking(store, USER_ID, room.id)

    assert exc_info.value.code == BookingErrorCode.ROOM_AT_CAPACITY
    assert await store.count_bookings_in_room(room.id) == 2


@pytest.mark.asyncio
async def test_create_takes_last_slot_then_room_is_full(store):
    room = store.add_room(capacity=2)
    store.add_booking(10, room)
    store.enroll(USER_ID)
    store.enroll(OTHER_USER_ID)

    await create_booking(store, USER_ID, room.id)

    assert await store.count_bookings_in_room(room.id) == 2
    with pytest.raises(CapacityExceededError):
        await create_booking(store, OTHER_USER_ID, room.id)


@pytest.mark.asyncio
async def test_create_in_overfilled_room_stays_closed(store):
    room = store.add_room(capacity=1)
    store.add_booking(10, room)
    store.add_booking(11, room)
    store.enroll(USER_ID)

    with pytest.raises(CapacityExceededError):
        await create_booking(store, USER_ID, room.id)


@pytest.mark.asyncio
async def test_update_moves_booking(store):
    old_room = store.add_room()
    new_room = store.add_room()
    store.enroll(USER_ID)
    booking = store.add_booking(USER_ID, old_room)

    updated = await update_booking(store, booking.id, new_room.id, USER_ID)

    assert updated.id == booking.id
    assert updated.room_id == new_room.id
    assert store.locked_rooms == [new_room.id]


@pytest.mark.asyncio
async def test_update_unknown_room_raises_not_found(store):
    store.enroll(USER_ID)
    booking = store.add_booking(USER_ID, store.add_room())

    with pytest.raises(NotFoundError) as exc_info:
        await update_booking(store, booking.id, 999, USER_ID)

    assert exc_info.value.code == BookingErrorCode.ROOM_NOT_FOUND


@pytest.mark.asyncio
async def test_update_by_caller_without_booking_raises_not_found(store):
    room = store.add_room()
    store.enroll(USER_ID)
    other = store.add_booking(OTHER_USER_ID, room)

    with pytest.raises(NotFoundError) as exc_info:
        await update_booking(store, other.id, room.id, USER_ID)

    assert exc_info.value.code == BookingErrorCode.CALLER_HAS_NO_BOOKING


@pytest.mark.asyncio
async def test_update_without_enrollment_is_unauthorized(store):
    room = store.add_room()
    booking = store.add_booking(USER_ID, room)

    with pytest.raises(UnauthorizedError) as exc_info:
        await update_booking(store, booking.id, room.id, USER_ID)

    assert exc_info.value.code == BookingErrorCode.ENROLLMENT_NOT_FOUND


@pytest.mark.asyncio
async def test_update_unknown_booking_id_raises_not_found(store):
    room = store.add_room()
    store.enroll(USER_ID)
    store.add_booking(USER_ID, room)

    with pytest.raises(NotFoundError) as exc_info:
        await update_booking(store, 999, room.id, USER_ID)

    assert exc_info.value.code == BookingErrorCode.BOOKING_NOT_FOUND


@pytest.mark.asyncio
async def test_update_someone_elses_booking_is_unauthorized(store):
    room = store.add_room(capacity=5)
    store.enroll(USER_ID)
    store.add_booking(USER_ID, room)
    other = store.add_booking(OTHER_USER_ID, room)

    with pytest.raises(UnauthorizedError) as exc_info:
        await update_booking(store, other.id, room.id, USER_ID)

    assert exc_info.value.code == BookingErrorCode.NOT_BOOKING_OWNER
    assert other.room_id == room.id


@pytest.mark.asyncio
@pytest.mark.parametrize("ticket, code", INELIGIBLE_TICKETS)
async def test_update_with_ineligible_ticket(store, ticket, code):
    old_room = store.add_room()
    new_room = store.add_room()
    store.enroll(USER_ID, **ticket)
    booking = store.add_booking(USER_ID, old_room)

    with pytest.raises(IneligibleTicketError) as exc_info:
        await update_booking(store, booking.id, new_room.id, USER_ID)

    assert exc_info.value.code == code
    assert booking.room_id == old_room.id


@pytest.mark.asyncio
async def test_update_into_full_room_raises_capacity_exceeded(store):
    old_room = store.add_room()
    full_room = store.add_room(capacity=1)
    store.add_booking(OTHER_USER_ID, full_room)
    store.enroll(USER_ID)
    booking = store.add_booking(USER_ID, old_room)

    with pytest.raises(CapacityExceededError):
        await update_booking(store, booking.id, full_room.id, USER_ID)

    assert booking.room_id == old_room.id


@pytest.mark.asyncio
async def test_moving_into_own_full_room_succeeds(store):
    room = store.add_room(capacity=2)
    store.enroll(USER_ID)
    booking = store.add_booking(USER_ID, room)
    store.add_booking(OTHER_USER_ID, room)

    updated = await update_booking(store, booking.id, room.id, USER_ID)

    assert updated.room_id == room.id
