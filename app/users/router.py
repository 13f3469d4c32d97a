import math
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from fastapi import APIRouter

from app.core.dependencies import Tokens
from app.core.exceptions import AppError, InternalError, ValidationError
from app.core.logging import get_logger
from app.users.dependencies import Users
from app.users.schemas import (
    CreateUserRequest,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PaginatedResponse,
    UpdateUserRequest,
    UserResponse,
)

router = APIRouter(prefix="/users", tags=["users"])

logger = get_logger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
MAX_USER_ID = 2**32 - 1
# Largest page whose offset still fits a signed 64-bit integer.
MAX_PAGE = (2**63 - 1) // MAX_LIMIT


def _errors(*codes: int) -> dict[int | str, dict[str, Any]]:
    return {code: {"model": ErrorResponse} for code in codes}


@contextmanager
def _failure_message(message: str) -> Iterator[None]:
    """Replace unexpected errors with a sanitized InternalError; log the original."""
    try:
        yield
    except AppError:
        raise
    except Exception as exc:
        logger.exception(message, error_type=type(exc).__name__)
        raise InternalError(message) from exc


def _parse_int(raw: str | None) -> int | None:
    """Plain base-10 integers only: no whitespace, underscores or non-ASCII digits."""
    if raw is None:
        return None
    digits = raw[1:] if raw.startswith("-") else raw
    if not (digits.isascii() and digits.isdigit()):
        return None
    return int(raw)


def _page_number(raw: str | None) -> int:
    page = _parse_int(raw)
    if page is None or not 1 <= page <= MAX_PAGE:
        return DEFAULT_PAGE
    return page


def _page_size(raw: str | None) -> int:
    # Out-of-range sizes fall back to the default, not the nearest bound.
    limit = _parse_int(raw)
    if limit is None or not 1 <= limit <= MAX_LIMIT:
        return DEFAULT_LIMIT
    return limit


def _parse_user_id(raw: str) -> int:
    if not (raw.isascii() and raw.isdigit()) or int(raw) > MAX_USER_ID:
        raise ValidationError("Invalid user ID")
    return int(raw)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=201,
    summary="Register a new user",
    responses=_errors(400, 409, 500),
)
async def register(body: CreateUserRequest, users: Users) -> UserResponse:
    with _failure_message("Failed to create user"):
        return await users.register(body)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Authenticate a user and return a token",
    responses=_errors(400, 401, 500),
)
async def login(body: LoginRequest, users: Users, tokens: Tokens) -> LoginResponse:
    with _failure_message("Login failed"):
        user = await users.login(body)
        token = tokens.issue(str(user.id))
    return LoginResponse(token=token, user=UserResponse.model_validate(user))


@router.get(
    "",
    response_model=PaginatedResponse[UserResponse],
    summary="List users with pagination",
    responses=_errors(500),
)
async def list_users(
    users: Users, page: str | None = None, limit: str | None = None
) -> PaginatedResponse[UserResponse]:
    page_number = _page_number(page)
    page_size = _page_size(limit)
    with _failure_message("Failed to fetch users"):
        data, total = await users.get_all(page_number, page_size)
    return PaginatedResponse[UserResponse](
        data=data,
        total=total,
        page=page_number,
        limit=page_size,
        total_pages=math.ceil(total / page_size),
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get a user by id",
    responses=_errors(400, 404, 500),
)
async def get_user(user_id: str, users: Users) -> UserResponse:
    uid = _parse_user_id(user_id)
    with _failure_message("Failed to fetch user"):
        return await users.get_by_id(uid)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update a user's name and/or email",
    responses=_errors(400, 404, 409, 500),
)
async def update_user(user_id: str, body: UpdateUserRequest, users: Users) -> UserResponse:
    uid = _parse_user_id(user_id)
    with _failure_message("Failed to update user"):
        return await users.update(uid, body)


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    summary="Soft delete a user",
    responses=_errors(400, 404, 500),
)
async def delete_user(user_id: str, users: Users) -> MessageResponse:
    uid = _parse_user_id(user_id)
    with _failure_message("Failed to delete user"):
        await users.delete(uid)
    return MessageResponse(message="User deleted successfully")
