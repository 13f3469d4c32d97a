"""Per-request wiring of repository -> service for the users router."""
from typing import Annotated

from fastapi import Depends

from app.core.dependencies import DbSession, Hasher
from app.users.repository import SqlAlchemyUserRepository, UserRepository
from app.users.service import UserService


def get_user_repository(db: DbSession) -> UserRepository:
    return SqlAlchemyUserRepository(db)


def get_user_service(
    repo: Annotated[UserRepository, Depends(get_user_repository)],
    hasher: Hasher,
) -> UserService:
    return UserService(repo, hasher)


Users = Annotated[UserService, Depends(get_user_service)]
