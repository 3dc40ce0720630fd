from hotel_booking.schemas.user import UserCreate, UserResponse, SignInRequest, SignInResponse
from hotel_booking.schemas.booking import (
    BookingRequest,
    BookingIdResponse,
    RoomResponse,
    BookingWithRoomResponse,
)

__all__ = [
    "UserCreate", "UserResponse", "SignInRequest", "SignInResponse",
    "BookingRequest", "BookingIdResponse", "RoomResponse", "BookingWithRoomResponse",
]
