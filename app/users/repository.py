"""User persistence.

``UserRepository`` is the contract the service depends on. The SQLAlchemy
implementation below is the production one; tests swap in an in-memory fake.
Every read and write filters out soft-deleted rows explicitly.
"""
from datetime import datetime, timezone
from typing import NoReturn, Protocol

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from app.core.logging import get_logger
from app.users.models import User

logger = get_logger(__name__)

_UNIQUE_VIOLATION_SQLSTATE = "23505"


class RecordNotFoundError(Exception):
    pass


class DuplicateKeyError(Exception):
    pass


class UserRepository(Protocol):
    async def create(self, user: User) -> int:
        """Persist a new user and return its generated id."""
        ...

    async def find_by_id(self, user_id: int) -> User:
        ...

    async def find_by_email(self, email: str) -> User:
        """Case-insensitive lookup."""
        ...

    async def find_all(self, page: int, limit: int) -> tuple[list[User], int]:
        """Return one page of users plus the count of all live users."""
        ...

    async def update(self, user: User) -> None:
        ...

    async def delete(self, user_id: int) -> None:
        """Soft delete: stamp ``deleted_at`` and hide the row from reads."""
        ...


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == _UNIQUE_VIOLATION_SQLSTATE:
        return True
    message = str(orig).lower()
    return "unique" in message or "duplicate key" in message


class SqlAlchemyUserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _live() -> Select[tuple[User]]:
        return select(User).where(User.deleted_at.is_(None))

    async def _raise_integrity_error(self, exc: IntegrityError, operation: str) -> NoReturn:
        await self.db.rollback()
        if not _is_unique_violation(exc):
            raise exc
        logger.warning("Unique constraint violated", table="users", operation=operation)
        raise DuplicateKeyError("users.email") from exc

    async def create(self, user: User) -> int:
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self._raise_integrity_error(exc, "create")
        await self.db.refresh(user)
        return user.id

    async def find_by_id(self, user_id: int) -> User:
        result = await self.db.execute(self._live().where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise RecordNotFoundError(f"user id={user_id}")
        return user

    async def find_by_email(self, email: str) -> User:
        result = await self.db.execute(
            self._live().where(func.lower(User.email) == email.lower())
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise RecordNotFoundError("user email lookup")
        return user

    async def find_all(self, page: int, limit: int) -> tuple[list[User], int]:
        offset = (page - 1) * limit

        count_result = await self.db.execute(
            select(func.count()).select_from(User).where(User.deleted_at.is_(None))
        )
        total = count_result.scalar_one()

        result = await self.db.execute(
            self._live().order_by(User.id).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def update(self, user: User) -> None:
        if user.is_deleted:
            raise RecordNotFoundError(f"user id={user.id}")
        now = datetime.now(timezone.utc)
        stmt = (
            update(User)
            .where(User.id == user.id, User.deleted_at.is_(None))
            .values(name=user.name, email=user.email, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        # Pending changes on the entity go out only through the filtered UPDATE.
        with self.db.no_autoflush:
            try:
                result = await self.db.execute(stmt)
            except IntegrityError as exc:
                await self._raise_integrity_error(exc, "update")
        if result.rowcount == 0:
            await self.db.rollback()
            raise RecordNotFoundError(f"user id={user.id}")

        for key, value in (("name", user.name), ("email", user.email), ("updated_at", now)):
            set_committed_value(user, key, value)
        await self.db.commit()

    async def delete(self, user_id: int) -> None:
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.deleted_at.is_(None))
            .values(deleted_at=datetime.now(timezone.utc))
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise RecordNotFoundError(f"user id={user_id}")
        await self.db.commit()
