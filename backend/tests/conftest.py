"""
Pytest fixtures for test database, client, authentication and booking data.

API tests run against a real database (in-memory SQLite by default, or
whatever TEST_DATABASE_URL points at) with tables created and dropped per
test. Service tests use InMemoryEntityStore and never touch a database.
"""

import itertools
import os
from datetime import date
from typing import AsyncGenerator, Optional

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from hotel_booking.main import app
from hotel_booking.db.base import Base
from hotel_booking.db.session import get_db
from hotel_booking.core.security import create_access_token, hash_password
from hotel_booking.models import (
    Address,
    Booking,
    Enrollment,
    Hotel,
    Room,
    Session,
    Ticket,
    TicketStatus,
    TicketType,
    User,
)
from hotel_booking.stores.interfaces import EntityStore

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

_engine_options = {"echo": False}
if TEST_DATABASE_URL.startswith("sqlite"):
    # One shared connection so every session sees the same in-memory database.
    _engine_options.update(poolclass=StaticPool, connect_args={"check_same_thread": False})

_sequence = itertools.count(1)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation.

    The engine is built per test so its connections belong to the test's event loop.
    """
    test_engine = create_async_engine(TEST_DATABASE_URL, **_engine_options)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _save(db_session: AsyncSession, instance):
    db_session.add(instance)
    await db_session.commit()
    await db_session.refresh(instance)
    return instance


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession):
    """Factory creating users with unique emails."""

    async def _make_user(password: str = "testpassword123") -> User:
        n = next(_sequence)
        return await _save(
            db_session,
            User(email=f"user{n}@example.com", hashed_password=hash_password(password)),
        )

    return _make_user


@pytest_asyncio.fixture
async def make_token(db_session: AsyncSession):
    """Factory issuing a token with a live session for a user."""

    async def _make_token(user: User) -> str:
        token = create_access_token(data={"sub": str(user.id)})
        await _save(db_session, Session(user_id=user.id, token=token))
        return token

    return _make_token


@pytest_asyncio.fixture
async def make_room(db_session: AsyncSession):
    """Factory creating a room (and its hotel unless one is given)."""

    async def _make_room(capacity: int = 2, hotel: Optional[Hotel] = None) -> Room:
        if hotel is None:
            hotel = await _save(
                db_session,
                Hotel(name=f"Hotel {next(_sequence)}", image="https://example.com/hotel.png"),
            )
        return await _save(
            db_session,
            Room(name=f"Room {next(_sequence)}", capacity=capacity, hotel_id=hotel.id),
        )

    return _make_room


@pytest_asyncio.fixture
async def make_enrollment(db_session: AsyncSession):
    """Factory enrolling a user (with address) and giving them a ticket."""

    async def _make_enrollment(
        user: User,
        status: Optional[TicketStatus] = TicketStatus.PAID,
        is_remote: bool = False,
        includes_hotel: bool = True,
    ) -> Enrollment:
        n = next(_sequence)
        enrollment = await _save(
            db_session,
            Enrollment(
                name=f"Attendee {n}",
                cpf=f"{n:011d}",
                birthday=date(1990, 1, 1),
                phone="(21) 98999-9999",
                user_id=user.id,
            ),
        )
        await _save(
            db_session,
            Address(
                cep="12345-678",
                street="Rua das Flores",
                city="Rio de Janeiro",
                state="RJ",
                number="10",
                neighborhood="Centro",
                enrollment_id=enrollment.id,
            ),
        )
        if status is not None:
            ticket_type = await _save(
                db_session,
                TicketType(
                    name="Presencial + Hotel" if includes_hotel else "Presencial",
                    price=60000,
                    is_remote=is_remote,
                    includes_hotel=includes_hotel,
                ),
            )
            await _save(
                db_session,
                Ticket(ticket_type_id=ticket_type.id, enrollment_id=enrollment.id, status=status),
            )
        return enrollment

    return _make_enrollment


@pytest_asyncio.fixture
async def make_booking(db_session: AsyncSession):
    async def _make_booking(user: User, room: Room) -> Booking:
        return await _save(db_session, Booking(user_id=user.id, room_id=room.id))

    return _make_booking


@pytest_asyncio.fixture
async def test_user(make_user) -> User:
    return await make_user()


@pytest_asyncio.fixture
async def auth_headers(test_user: User, make_token) -> dict:
    """Authorization headers with a Bearer token backed by a session."""
    token = await make_token(test_user)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def eligible_user(test_user: User, make_enrollment) -> User:
    """The test user, enrolled with a paid in-person ticket that includes a hotel."""
    await make_enrollment(test_user)
    return test_user


class InMemoryEntityStore(EntityStore):
    """Dict-backed store for exercising the booking service without a database."""

    def __init__(self) -> None:
        self.rooms: dict[int, Room] = {}
        self.bookings: dict[int, Booking] = {}
        self.enrollments: dict[int, Enrollment] = {}
        self.tickets: dict[int, Ticket] = {}
        self.locked_rooms: list[int] = []
        self._ids = itertools.count(1)

    # Seeding helpers

    def add_room(self, capacity: int = 2) -> Room:
        room = Room(id=next(self._ids), name="101", capacity=capacity, hotel_id=1)
        self.rooms[room.id] = room
        return room

    def add_booking(self, user_id: int, room: Room) -> Booking:
        booking = Booking(id=next(self._ids), user_id=user_id, room_id=room.id)
        self.bookings[booking.id] = booking
        return booking

    def enroll(
        self,
        user_id: int,
        status: Optional[TicketStatus] = TicketStatus.PAID,
        is_remote: bool = False,
        includes_hotel: bool = True,
    ) -> Enrollment:
        enrollment = Enrollment(id=next(self._ids), user_id=user_id)
        self.enrollments[user_id] = enrollment
        if status is not None:
            ticket_type = TicketType(
                id=next(self._ids),
                is_remote=is_remote,
                includes_hotel=includes_hotel,
            )
            self.tickets[enrollment.id] = Ticket(
                id=next(self._ids),
                enrollment_id=enrollment.id,
                ticket_type_id=ticket_type.id,
                ticket_type=ticket_type,
                status=status,
            )
        return enrollment

    # EntityStore

    async def find_room(self, room_id, *, for_update=False):
        if for_update:
            self.locked_rooms.append(room_id)
        return self.rooms.get(room_id)

    async def find_booking_by_user(self, user_id):
        return next((b for b in self.bookings.values() if b.user_id == user_id), None)

    async def find_booking(self, booking_id):
        return self.bookings.get(booking_id)

    async def find_bookings_by_room(self, room_id):
        return [b for b in self.bookings.values() if b.room_id == room_id]

    async def count_bookings_in_room(self, room_id, *, exclude_booking_id=None):
        return sum(
            1 for b in self.bookings.values()
            if b.room_id == room_id and b.id != exclude_booking_id
        )

    async def find_enrollment_by_user(self, user_id):
        return self.enrollments.get(user_id)

    async def find_ticket_by_enrollment(self, enrollment_id):
        return self.tickets.get(enrollment_id)

    async def create_booking(self, user_id, room_id):
        return self.add_booking(user_id, self.rooms[room_id])

    async def update_booking_room(self, booking_id, room_id):
        booking = self.bookings[booking_id]
        booking.room_id = room_id
        return booking


@pytest.fixture
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore()
