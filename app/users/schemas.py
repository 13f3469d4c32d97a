from datetime import datetime
from typing import Annotated, Generic, Literal, TypeVar

from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator

T = TypeVar("T")

UserName = Annotated[str, Field(min_length=2, max_length=100)]
# Emails compare case-insensitively; store and look them up lowercased.
Email = Annotated[EmailStr, AfterValidator(str.lower)]

# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_PASSWORD_BYTES = 72


class CreateUserRequest(BaseModel):
    name: UserName
    email: Email
    password: str = Field(min_length=6)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode()) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
        return value


class UpdateUserRequest(BaseModel):
    """Partial update: an empty or missing field leaves the stored value unchanged."""

    name: UserName | Literal[""] | None = None
    email: Email | Literal[""] | None = None


class LoginRequest(BaseModel):
    email: Email
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


class PaginatedResponse(BaseModel, Generic[T]):
    data: list[T]
    total: int
    page: int
    limit: int
    total_pages: int


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None


class MessageResponse(BaseModel):
    message: str
