"""Store interfaces (repository pattern).

The booking service depends only on this interface so it can run against the
database in production and against an in-memory fake in unit tests. Lookups
return ``None`` (or an empty list) on no match; only the two booking writes
mutate state.
"""

from abc import ABC, abstractmethod
from typing import Optional

from hotel_booking.models import Booking, Enrollment, Room, Ticket


class DuplicateBookingError(Exception):
    """The user already holds a booking; raised by ``create_booking``."""

    def __init__(self, user_id: int):
        super().__init__(f"user {user_id} already has a booking")
        self.user_id = user_id


class EntityStore(ABC):
    """Persistence operations consumed by the booking allocation service."""

    @abstractmethod
    async def find_room(self, room_id: int, *, for_update: bool = False) -> Optional[Room]:
        """Return a room by ID.

        With ``for_update`` the room row stays locked until the surrounding
        transaction ends, serializing capacity checks on that room.
        """
        ...

    @abstractmethod
    async def find_booking_by_user(self, user_id: int) -> Optional[Booking]:
        """Return the user's booking with its room loaded."""
        ...

    @abstractmethod
    async def find_booking(self, booking_id: int) -> Optional[Booking]:
        """Return a booking by ID."""
        ...

    @abstractmethod
    async def find_bookings_by_room(self, room_id: int) -> list[Booking]:
        """Return every booking currently placed in a room."""
        ...

    @abstractmethod
    async def count_bookings_in_room(
        self, room_id: int, *, exclude_booking_id: Optional[int] = None
    ) -> int:
        """Count the bookings in a room, leaving out ``exclude_booking_id``."""
        ...

    @abstractmethod
    async def find_enrollment_by_user(self, user_id: int) -> Optional[Enrollment]:
        """Return the user's enrollment with its address loaded."""
        ...

    @abstractmethod
    async def find_ticket_by_enrollment(self, enrollment_id: int) -> Optional[Ticket]:
        """Return the enrollment's ticket with its ticket type loaded."""
        ...

    @abstractmethod
    async def create_booking(self, user_id: int, room_id: int) -> Booking:
        """Persist a new booking and return it.

        Raises DuplicateBookingError when the user already holds one, including
        a booking written after the caller's own existence check.
        """
        ...

    @abstractmethod
    async def update_booking_room(self, booking_id: int, room_id: int) -> Booking:
        """Move an existing booking to another room and return it."""
        ...
