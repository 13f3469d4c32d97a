"""
Test fixtures using async SQLite for fast, isolated tests.
No PostgreSQL required for unit tests.
"""
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.core.security import PasswordHasher
from app.db.base import Base
from app.main import create_app
from app.users.models import User
from app.users.repository import DuplicateKeyError, RecordNotFoundError
from app.users.service import UserService

# Lowest cost bcrypt accepts; keeps hashing fast in tests.
TEST_BCRYPT_ROUNDS = 4


class InMemoryUserRepository:
    """Dict-backed UserRepository with the same soft-delete and uniqueness rules."""

    def __init__(self):
        self.rows: dict[int, User] = {}
        self._next_id = 1

    @staticmethod
    def _copy(user: User) -> User:
        return User(
            id=user.id,
            name=user.name,
            email=user.email,
            password_hash=user.password_hash,
            created_at=user.created_at,
            updated_at=user.updated_at,
            deleted_at=user.deleted_at,
        )

    def _live(self) -> list[User]:
        return [u for u in self.rows.values() if u.deleted_at is None]

    def _email_in_use(self, email: str, exclude_id: int | None = None) -> bool:
        return any(
            u.email.lower() == email.lower() and u.id != exclude_id for u in self._live()
        )

    async def create(self, user: User) -> int:
        if self._email_in_use(user.email):
            raise DuplicateKeyError("users.email")
        now = datetime.now(timezone.utc)
        user.id = self._next_id
        self._next_id += 1
        user.created_at = now
        user.updated_at = now
        user.deleted_at = None
        self.rows[user.id] = self._copy(user)
        return user.id

    async def find_by_id(self, user_id: int) -> User:
        user = self.rows.get(user_id)
        if user is None or user.deleted_at is not None:
            raise RecordNotFoundError(f"user id={user_id}")
        return self._copy(user)

    async def find_by_email(self, email: str) -> User:
        for user in self._live():
            if user.email.lower() == email.lower():
                return self._copy(user)
        raise RecordNotFoundError("user email lookup")

    async def find_all(self, page: int, limit: int) -> tuple[list[User], int]:
        live = sorted(self._live(), key=lambda u: u.id)
        offset = (page - 1) * limit
        return [self._copy(u) for u in live[offset:offset + limit]], len(live)

    async def update(self, user: User) -> None:
        stored = self.rows.get(user.id)
        if stored is None or stored.deleted_at is not None:
            raise RecordNotFoundError(f"user id={user.id}")
        if self._email_in_use(user.email, exclude_id=user.id):
            raise DuplicateKeyError("users.email")
        user.updated_at = datetime.now(timezone.utc)
        self.rows[user.id] = self._copy(user)

    async def delete(self, user_id: int) -> None:
        stored = self.rows.get(user_id)
        if stored is None or stored.deleted_at is not None:
            raise RecordNotFoundError(f"user id={user_id}")
        stored.deleted_at = datetime.now(timezone.utc)


@pytest_asyncio.fixture
async def engine():
    """A fresh in-memory SQLite database per test, shared by every session."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def fake_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def service(fake_repo, hasher) -> UserService:
    return UserService(fake_repo, hasher)


@pytest.fixture
def app(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return create_app(
        Settings(bcrypt_rounds=TEST_BCRYPT_ROUNDS, database_url="sqlite+aiosqlite:///:memory:"),
        session_factory=session_factory,
    )


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as client:
        yield client
