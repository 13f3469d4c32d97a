import enum


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    AUTHENTICATION = "authentication"
    INTERNAL = "internal"


class AppError(Exception):
    """Base for every error whose message may be shown to an API client.

    Subclasses pin ``kind``; the HTTP layer maps kinds to status codes.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT


class AuthenticationError(AppError):
    kind = ErrorKind.AUTHENTICATION


class InternalError(AppError):
    kind = ErrorKind.INTERNAL
