from datetime import datetime, timedelta, timezone
from functools import cached_property

import bcrypt
from jose import JWTError, jwt


class HashingError(Exception):
    pass


class PasswordHasher:
    """bcrypt hashing with a configurable work factor."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        try:
            return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self.rounds)).decode()
        except (ValueError, TypeError) as exc:
            raise HashingError("password hashing failed") from exc

    def verify(self, password: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode(), hashed.encode())
        except ValueError:
            # Malformed digest or input over bcrypt's 72-byte limit.
            return False

    @cached_property
    def _decoy_hash(self) -> str:
        return self.hash("decoy-password")

    def verify_decoy(self, password: str) -> bool:
        """Spend one full verification on a throwaway digest. Always False.

        Used when no account matches, so that an unknown email and a wrong
        password take the same time to reject.
        """
        self.verify(password, self._decoy_hash)
        return False


class TokenIssuer:
    """Signs and reads expiring JWT access tokens whose subject is a user id."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, subject: str) -> str:
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.expire_minutes)
        payload = {"sub": subject, "exp": expire}
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> str | None:
        """Returns the subject (user id) or None if invalid."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            return payload.get("sub")
        except JWTError:
            return None
