"""User business rules: uniqueness, credentials, partial updates."""
from starlette.concurrency import run_in_threadpool

from app.core.logging import get_logger
from app.core.security import PasswordHasher
from app.users.exceptions import (
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    UserNotFoundError,
)
from app.users.models import User
from app.users.repository import DuplicateKeyError, RecordNotFoundError, UserRepository
from app.users.schemas import (
    CreateUserRequest,
    LoginRequest,
    UpdateUserRequest,
    UserResponse,
)

logger = get_logger(__name__)


class UserService:
    def __init__(self, repo: UserRepository, hasher: PasswordHasher):
        self.repo = repo
        self.hasher = hasher

    async def _email_taken(self, email: str) -> bool:
        try:
            await self.repo.find_by_email(email)
        except RecordNotFoundError:
            return False
        return True

    async def _get_user(self, user_id: int) -> User:
        try:
            return await self.repo.find_by_id(user_id)
        except RecordNotFoundError:
            raise UserNotFoundError() from None

    async def register(self, req: CreateUserRequest) -> UserResponse:
        if await self._email_taken(req.email):
            raise EmailAlreadyExistsError()

        password_hash = await run_in_threadpool(self.hasher.hash, req.password)
        user = User(name=req.name, email=req.email, password_hash=password_hash)
        try:
            await self.repo.create(user)
        except DuplicateKeyError:
            # Lost a race with a concurrent registration of the same email.
            raise EmailAlreadyExistsError() from None

        logger.info("User registered", user_id=user.id)
        return UserResponse.model_validate(user)

    async def login(self, req: LoginRequest) -> User:
        """Returns the full user record; token issuance is the caller's job."""
        try:
            user = await self.repo.find_by_email(req.email)
        except RecordNotFoundError:
            await run_in_threadpool(self.hasher.verify_decoy, req.password)
            logger.info("Login rejected")
            raise InvalidCredentialsError() from None

        if not await run_in_threadpool(self.hasher.verify, req.password, user.password_hash):
            logger.info("Login rejected")
            raise InvalidCredentialsError()
        return user

    async def get_by_id(self, user_id: int) -> UserResponse:
        user = await self._get_user(user_id)
        return UserResponse.model_validate(user)

    async def get_all(self, page: int, limit: int) -> tuple[list[UserResponse], int]:
        users, total = await self.repo.find_all(page, limit)
        return [UserResponse.model_validate(u) for u in users], total

    async def update(self, user_id: int, req: UpdateUserRequest) -> UserResponse:
        user = await self._get_user(user_id)

        if req.email and req.email != user.email:
            if await self._email_taken(req.email):
                raise EmailAlreadyExistsError()
            user.email = req.email
        if req.name:
            user.name = req.name

        try:
            await self.repo.update(user)
        except RecordNotFoundError:
            raise UserNotFoundError() from None
        except DuplicateKeyError:
            raise EmailAlreadyExistsError() from None

        logger.info("User updated", user_id=user.id)
        return UserResponse.model_validate(user)

    async def delete(self, user_id: int) -> None:
        await self._get_user(user_id)
        try:
            await self.repo.delete(user_id)
        except RecordNotFoundError:
            raise UserNotFoundError() from None
        logger.info("User deleted", user_id=user_id)
