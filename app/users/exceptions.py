from app.core.exceptions import AuthenticationError, ConflictError, NotFoundError


class UserNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("user not found")


class EmailAlreadyExistsError(ConflictError):
    def __init__(self) -> None:
        super().__init__("email already exists")


class InvalidCredentialsError(AuthenticationError):
    # One message for unknown email and wrong password alike.
    def __init__(self) -> None:
        super().__init__("invalid credentials")
