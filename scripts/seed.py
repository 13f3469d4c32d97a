"""Seed demo users. Run with: python -m scripts.seed"""
import asyncio

from app.config import settings
from app.core.security import PasswordHasher
from app.db.session import create_engine, create_session_factory
from app.users.exceptions import EmailAlreadyExistsError
from app.users.repository import SqlAlchemyUserRepository
from app.users.schemas import CreateUserRequest
from app.users.service import UserService

DEMO_USERS = [
    ("John Doe", "john@example.com", "secret123"),
    ("Jane Roe", "jane@example.com", "secret123"),
    ("Sam Poe", "sam@example.com", "secret123"),
]


async def main() -> None:
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    try:
        async with session_factory() as db:
            users = UserService(SqlAlchemyUserRepository(db), hasher)
            for name, email, password in DEMO_USERS:
                try:
                    created = await users.register(
                        CreateUserRequest(name=name, email=email, password=password)
                    )
                    print(f"  Added: {created.email} (id={created.id})")
                except EmailAlreadyExistsError:
                    print(f"  Exists: {email}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
