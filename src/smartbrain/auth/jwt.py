"""Session token issuance.

Learn: The token is a PyJWT HS256 string carrying the user's email and an
expiry two days out. It doubles as the Redis key for the session, so the
server never decodes it to authorize a request — presence in Redis is
the only check. decode() exists for tooling and tests.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from smartbrain.errors import ConfigurationError


class TokenError(Exception):
    """Raised when token verification fails."""


class TokenIssuer:
    """Creates signed, time-limited session tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expire_days: int = 2,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_days = expire_days

    def issue(self, email: str, now: Optional[datetime] = None) -> str:
        """Create a token for email.

        A random jti keeps two tokens issued in the same second distinct,
        since each one is its own session key.
        """
        if not self.secret:
            raise ConfigurationError("JWT secret is not configured")
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "email": email,
            "iat": issued_at,
            "exp": issued_at + timedelta(days=self.expire_days),
            "jti": secrets.token_urlsafe(8),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> dict:
        """Verify and decode a token.

        Returns the payload dict on success.
        Raises TokenError on failure.
        """
        if not self.secret:
            raise ConfigurationError("JWT secret is not configured")
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise TokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}")
