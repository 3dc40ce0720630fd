"""
SQLAlchemy implementation of the entity store.

Works on the request's AsyncSession and never commits: the get_db dependency
owns the transaction, which is what keeps the room lock taken by
``find_room(for_update=True)`` alive until the booking write is committed.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hotel_booking.models import Booking, Enrollment, Room, Ticket
from hotel_booking.stores.interfaces import DuplicateBookingError, EntityStore


class SqlAlchemyEntityStore(EntityStore):
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def find_room(self, room_id: int, *, for_update: bool = False) -> Optional[Room]:
        query = select(Room).where(Room.id == room_id)
        if for_update:
            # Renders FOR UPDATE on PostgreSQL; SQLite ignores it.
            query = query.with_for_update()
        result = await self._db.execute(query)
        return result.scalar_one_or_none()

    async def find_booking_by_user(self, user_id: int) -> Optional[Booking]:
        result = await self._db.execute(
            select(Booking)
            .options(selectinload(Booking.room))
            .where(Booking.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_booking(self, booking_id: int) -> Optional[Booking]:
        result = await self._db.execute(select(Booking).where(Booking.id == booking_id))
        return result.scalar_one_or_none()

    async def find_bookings_by_room(self, room_id: int) -> list[Booking]:
        result = await self._db.execute(
            select(Booking).where(Booking.room_id == room_id).order_by(Booking.id)
        )
        return list(result.scalars().all())

    async def find_enrollment_by_user(self, user_id: int) -> Optional[Enrollment]:
        result = await self._db.execute(
            select(Enrollment)
            .options(selectinload(Enrollment.address))
            .where(Enrollment.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def find_ticket_by_enrollment(self, enrollment_id: int) -> Optional[Ticket]:
        result = await self._db.execute(
            select(Ticket)
            .options(selectinload(Ticket.ticket_type))
            .where(Ticket.enrollment_id == enrollment_id)
            .order_by(Ticket.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def count_bookings_in_room(
        self, room_id: int, *, exclude_booking_id: Optional[int] = None
    ) -> int:
        query = select(func.count()).select_from(Booking).where(Booking.room_id == room_id)
        if exclude_booking_id is not None:
            query = query.where(Booking.id != exclude_booking_id)
        result = await self._db.execute(query)
        return result.scalar_one()

    async def create_booking(self, user_id: int, room_id: int) -> Booking:
        booking = Booking(user_id=user_id, room_id=room_id)
        try:
            # Savepoint: a uq_booking_user violation must not poison the request transaction.
            async with self._db.begin_nested():
                self._db.add(booking)
                await self._db.flush()
        except IntegrityError as e:
            raise DuplicateBookingError(user_id) from e
        await self._db.refresh(booking)
        return booking

    async def update_booking_room(self, booking_id: int, room_id: int) -> Booking:
        booking = await self.find_booking(booking_id)
        booking.room_id = room_id
        await self._db.flush()
        await self._db.refresh(booking)
        return booking
