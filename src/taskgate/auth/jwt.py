"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. A token
carries the user id (`sub`), when it was issued (`iat`) and when it
expires (`exp`), signed with HMAC-SHA256 using the server secret.
Validation needs no database lookup of the token itself, only of the user
it names. Expiry is the only way a token stops working; there is no
revocation list.

Each token also gets a random `jti`, so two tokens issued to the same user
in the same second are still different strings.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable, Optional

import jwt

from taskgate.config import settings


class TokenError(Exception):
    """Raised when token verification fails.

    The message is for server-side logs only. Callers must not surface it.
    """


@dataclass(frozen=True)
class TokenClaims:
    principal_id: str
    issued_at: datetime
    expires_at: datetime


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """Issues and validates signed, time-bounded bearer tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        default_ttl: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.default_ttl = default_ttl
        self._clock = clock

    def issue(self, principal_id: str, ttl: Optional[timedelta] = None) -> str:
        """Create a signed token for a user id."""
        issued = self._clock().replace(microsecond=0)
        expires = issued + (ttl if ttl is not None else self.default_ttl)
        payload = {
            "sub": str(principal_id),
            "iat": int(issued.timestamp()),
            "exp": int(expires.timestamp()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def validate(self, token: str) -> TokenClaims:
        """Verify signature and expiry, and return the claims.

        Expiry is checked against the codec's clock rather than inside
        jwt.decode, so a token is rejected at exactly t >= exp.

        Raises TokenError on any failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={
                    "require": ["sub", "iat", "exp"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}") from e

        sub, iat, exp = payload["sub"], payload["iat"], payload["exp"]
        if not isinstance(sub, str) or not sub:
            raise TokenError("Invalid token: bad subject")
        if not isinstance(iat, int) or not isinstance(exp, int):
            raise TokenError("Invalid token: bad timestamps")

        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        if self._clock() >= expires_at:
            raise TokenError("Token has expired")

        return TokenClaims(
            principal_id=sub,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
            expires_at=expires_at,
        )


@lru_cache
def get_token_codec() -> TokenCodec:
    """FastAPI dependency — the app-wide codec built from settings.

    Learn: The secret is injected here, once. Tests override this
    dependency with a codec that has its own secret or a fake clock.
    """
    return TokenCodec(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        default_ttl=timedelta(days=settings.token_expire_days),
    )
