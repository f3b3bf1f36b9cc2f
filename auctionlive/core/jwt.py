# auctionlive/core/jwt.py
"""JWT token utilities: issue and verify tokens bound to a user id."""

from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from auctionlive.core.config import settings
from auctionlive.errors import (
    TokenExpiredError,
    TokenMalformedError,
    TokenSignatureError,
)


class TokenService:
    """Signed-token capability used by the core to identify the acting user."""

    def __init__(
        self,
        secret_key: str = settings.SECRET_KEY,
        algorithm: str = settings.ALGORITHM,
        expire_minutes: int = settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, subject: str) -> str:
        """
        Create a JWT access token for a user.

        Args:
            subject: User id, stored in the standard ``sub`` claim

        Returns:
            JWT token string
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(subject),
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """
        Decode and validate a JWT token.

        Args:
            token: JWT token string

        Returns:
            The token subject (user id)

        Raises:
            TokenMalformedError: token is not a decodable JWT
            TokenExpiredError: token is past its ``exp`` claim
            TokenSignatureError: signature does not match our key
        """
        if not isinstance(token, str):
            raise TokenMalformedError()

        # Structural checks first so a garbage string is not reported as a bad signature
        try:
            jwt.get_unverified_header(token)
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            raise TokenMalformedError() from None

        if not isinstance(claims.get("sub"), str):
            raise TokenMalformedError()

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpiredError() from None
        except JWTError:
            raise TokenSignatureError() from None

        return payload["sub"]
