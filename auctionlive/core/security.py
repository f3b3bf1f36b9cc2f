from passlib.context import CryptContext

from auctionlive.core.config import settings


class PasswordHasher:
    """Salted, irreversible password hashing backed by passlib's bcrypt."""

    def __init__(self, rounds: int = settings.BCRYPT_ROUNDS):
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    def hash(self, password: str) -> str:
        """Hash a password"""
        return self._context.hash(password)

    def verify(self, password: str, hashed_password: str) -> bool:
        """Verify a password against a hash"""
        return self._context.verify(password, hashed_password)
