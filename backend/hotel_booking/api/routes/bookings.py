"""
Hotel booking endpoints: view, create and move the caller's booking.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.db.session import get_db
from hotel_booking.schemas.booking import (
    BookingRequest,
    BookingIdResponse,
    BookingWithRoomResponse,
)
from hotel_booking.services.booking_service import (
    create_booking,
    get_booking_for_user,
    update_booking,
)
from hotel_booking.services.cache_service import (
    get_cached_booking,
    invalidate_booking_cache,
    set_cached_booking,
)
from hotel_booking.stores import EntityStore, SqlAlchemyEntityStore
from hotel_booking.core.security import get_current_user_id

router = APIRouter(prefix="/booking", tags=["Bookings"])


def get_store(db: AsyncSession = Depends(get_db)) -> EntityStore:
    return SqlAlchemyEntityStore(db)


@router.get("", response_model=BookingWithRoomResponse)
async def get_booking(
    user_id: int = Depends(get_current_user_id),
    store: EntityStore = Depends(get_store),
):
    """Return the caller's booking together with its room."""
    cached = await get_cached_booking(user_id)
    if cached:
        return JSONResponse(content=cached)

    booking = await get_booking_for_user(store, user_id)
    response = BookingWithRoomResponse.from_booking(booking)
    await set_cached_booking(user_id, response.model_dump(mode="json", by_alias=True))
    return response


@router.post("", response_model=BookingIdResponse)
async def post_booking(
    body: BookingRequest,
    user_id: int = Depends(get_current_user_id),
    store: EntityStore = Depends(get_store),
    db: AsyncSession = Depends(get_db),
):
    """
    Book a room for the caller.

    404 unknown room, 401 when the caller already has a booking, is not
    enrolled or holds an ineligible ticket, 403 when the room is full.
    """
    booking = await create_booking(store, user_id, body.room_id)
    # Commit first so a concurrent GET cannot re-cache the previous room.
    await db.commit()
    await invalidate_booking_cache(user_id)
    return BookingIdResponse(booking_id=booking.id)


@router.put("/{booking_id}", response_model=BookingIdResponse)
async def put_booking(
    booking_id: int,
    body: BookingRequest,
    user_id: int = Depends(get_current_user_id),
    store: EntityStore = Depends(get_store),
    db: AsyncSession = Depends(get_db),
):
    """Move the caller's booking to another room. Same failure codes as POST."""
    booking = await update_booking(store, booking_id, body.room_id, user_id)
    # Commit first so a concurrent GET cannot re-cache the previous room.
    await db.commit()
    await invalidate_booking_cache(user_id)
    return BookingIdResponse(booking_id=booking.id)

