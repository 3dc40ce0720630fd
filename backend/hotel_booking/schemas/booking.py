"""
Pydantic schemas for booking request/response validation.

The wire format is camelCase (roomId, bookingId, hotelId, Room) while the
Python side stays snake_case; aliases bridge the two, and populate_by_name
lets the service layer build responses with the Python names.
"""

from datetime import datetime
from pydantic import BaseModel, Field

from hotel_booking.models import Booking, Room


class BookingRequest(BaseModel):
    room_id: int = Field(..., alias="roomId")


class BookingIdResponse(BaseModel):
    booking_id: int = Field(..., alias="bookingId")

    model_config = {"populate_by_name": True}


class RoomResponse(BaseModel):
    id: int
    name: str
    capacity: int
    hotel_id: int = Field(..., alias="hotelId")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_room(cls, room: Room) -> "RoomResponse":
        return cls(
            id=room.id,
            name=room.name,
            capacity=room.capacity,
            hotel_id=room.hotel_id,
            created_at=room.created_at,
            updated_at=room.updated_at,
        )


class BookingWithRoomResponse(BaseModel):
    id: int
    room: RoomResponse = Field(..., alias="Room")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingWithRoomResponse":
        return cls(id=booking.id, room=RoomResponse.from_room(booking.room))
