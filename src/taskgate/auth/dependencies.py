"""FastAPI auth dependencies — the per-request access gate.

Learn: These are used as Depends() in route handlers to turn the
Authorization header into a resolved Principal:

1. Parse "Bearer <token>"           → else 401
2. Validate signature + expiry      → else 401
3. Load the user named by the token → else 401 (e.g. deleted account)

Every rejection is the same UnauthorizedError; the actual reason only goes
to the server log. There is no partial success and no retry: the request
either gets a Principal or stops here.
"""

import uuid
from functools import lru_cache
from typing import Optional

import structlog
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from taskgate.auth.jwt import TokenCodec, TokenError, get_token_codec
from taskgate.auth.password import PasswordHasher
from taskgate.auth.principal import Principal
from taskgate.auth.service import Authenticator
from taskgate.auth.store import CredentialStore
from taskgate.config import settings
from taskgate.db.engine import get_db
from taskgate.errors import UnauthorizedError

logger = structlog.get_logger()


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an Authorization header value, if well-formed."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        return None
    return token


async def authenticate(
    authorization: Optional[str],
    store: CredentialStore,
    codec: TokenCodec,
) -> Principal:
    """Resolve the caller's Principal or raise UnauthorizedError."""
    token = parse_bearer(authorization)
    if token is None:
        logger.info("auth.token_rejected", reason="missing_or_malformed_header")
        raise UnauthorizedError()

    try:
        claims = codec.validate(token)
    except TokenError as e:
        logger.info("auth.token_rejected", reason=str(e))
        raise UnauthorizedError()

    try:
        user_id = uuid.UUID(claims.principal_id)
    except ValueError:
        logger.info("auth.token_rejected", reason="malformed_subject")
        raise UnauthorizedError()

    user = await store.find_by_id(user_id)
    if user is None:
        logger.info("auth.token_rejected", reason="unknown_principal", user_id=str(user_id))
        raise UnauthorizedError()

    return Principal.from_user(user)


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=settings.bcrypt_rounds)


def get_credential_store(db: AsyncSession = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_authenticator(
    store: CredentialStore = Depends(get_credential_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    codec: TokenCodec = Depends(get_token_codec),
) -> Authenticator:
    return Authenticator(store, hasher, codec)


async def get_current_user(
    authorization: Optional[str] = Header(None),
    store: CredentialStore = Depends(get_credential_store),
    codec: TokenCodec = Depends(get_token_codec),
) -> Principal:
    """Extract the current principal (required — 401 if missing or invalid).

    Learn: Routes declare `principal: Principal = Depends(get_current_user)`
    and hand the value to services explicitly. Nothing is stashed on the
    request object.
    """
    return await authenticate(authorization, store, codec)
