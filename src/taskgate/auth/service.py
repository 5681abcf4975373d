"""Authenticator — registration and login.

Learn: Both operations end with a freshly issued token:
- register: uniqueness check → hash → insert (ConflictError if taken) → issue token
- login: look up by email → verify digest → issue token

Login failures are collapsed into a single InvalidCredentialsError. An
unknown email still pays for one bcrypt verification (against a dummy
digest) so that response timing doesn't reveal which emails exist.
"""

from dataclasses import dataclass
from functools import lru_cache

import structlog

from taskgate.auth.jwt import TokenCodec
from taskgate.auth.password import PasswordHasher
from taskgate.auth.principal import Principal
from taskgate.auth.store import CredentialStore
from taskgate.errors import ConflictError, InvalidCredentialsError

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuthResult:
    principal: Principal
    token: str


class Authenticator:
    """Turns credentials into a verified principal plus a bearer token."""

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        codec: TokenCodec,
    ):
        self.store = store
        self.hasher = hasher
        self.codec = codec

    async def register(self, email: str, username: str, password: str) -> AuthResult:
        """Create an account and sign the new user in.

        A taken email or username is refused before any bcrypt work is
        spent. The insert still goes through the store, whose UNIQUE
        constraints settle a race between two registrations. Nothing is
        written until hashing has succeeded, and no token is issued unless
        the insert committed.
        """
        if (
            await self.store.find_by_identifier(email) is not None
            or await self.store.find_by_display_name(username) is not None
        ):
            raise ConflictError()

        password_hash = self.hasher.hash(password)
        user = await self.store.create(
            email=email, username=username, password_hash=password_hash
        )
        principal = Principal.from_user(user)
        logger.info("auth.registered", user_id=str(principal.id))
        return AuthResult(principal=principal, token=self.codec.issue(str(principal.id)))

    async def login(self, email: str, password: str) -> AuthResult:
        """Verify email + password and issue a new token.

        Raises InvalidCredentialsError for an unknown email or a wrong
        password, and callers can't tell the two apart.
        """
        user = await self.store.find_by_identifier(email)
        if user is None:
            self.hasher.verify(password, _dummy_hash(self.hasher.rounds))
            logger.info("auth.login_failed", reason="unknown_identifier")
            raise InvalidCredentialsError()

        if not self.hasher.verify(password, user.password_hash):
            logger.info("auth.login_failed", reason="bad_password", user_id=str(user.id))
            raise InvalidCredentialsError()

        # Upgrade digests made with an older cost factor
        if self.hasher.needs_rehash(user.password_hash):
            await self.store.update_password_hash(user, self.hasher.hash(password))
            logger.info("auth.password_rehashed", user_id=str(user.id))

        principal = Principal.from_user(user)
        logger.info("auth.login", user_id=str(principal.id))
        return AuthResult(principal=principal, token=self.codec.issue(str(principal.id)))


@lru_cache
def _dummy_hash(rounds: int) -> str:
    return PasswordHasher(rounds).hash("timing-equalizer")
