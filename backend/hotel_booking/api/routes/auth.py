"""
Authentication endpoints: sign-up and sign-in.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.db.session import get_db
from hotel_booking.schemas.user import UserCreate, UserResponse, SignInRequest, SignInResponse
from hotel_booking.services.auth_service import register_user, sign_in

router = APIRouter(tags=["Authentication"])


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new user account."""
    user = await register_user(db, user_data)
    return user


@router.post("/auth/sign-in", response_model=SignInResponse)
async def sign_in_endpoint(credentials: SignInRequest, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a bearer token bound to a new session."""
    user, token = await sign_in(db, credentials)
    return SignInResponse(user=UserResponse.model_validate(user), token=token)
