import os

os.environ.setdefault("TIXBOOK_JWT_SECRET_KEY", "test-signing-secret-please-rotate")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from tixbook.auth.repository import UserRepository
from tixbook.auth.service import AuthService
from tixbook.security.passwords import BcryptHasher
from tixbook.security.tokens import TokenService
from tixbook.tickets.repository import TicketRepository
from tixbook.tickets.service import BookingService

TEST_SECRET = "test-signing-secret-please-rotate"


@pytest_asyncio.fixture
async def engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def hasher() -> BcryptHasher:
    return BcryptHasher(rounds=4)


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest.fixture
def user_repository(session_factory: async_sessionmaker) -> UserRepository:
    return UserRepository(session_factory)


@pytest.fixture
def ticket_repository(session_factory: async_sessionmaker) -> TicketRepository:
    return TicketRepository(session_factory)


@pytest.fixture
def auth_service(user_repository: UserRepository, hasher: BcryptHasher, token_service: TokenService) -> AuthService:
    return AuthService(
        user_repository,
        password_hasher=hasher,
        token_service=token_service,
        operator_usernames=("ops",),
    )


@pytest.fixture
def booking_service(ticket_repository: TicketRepository) -> BookingService:
    return BookingService(ticket_repository)
