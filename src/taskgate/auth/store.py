"""Credential store — user records keyed by email, username and id.

Learn: The store normalizes every email before touching the database
(trim + lowercase), so "ALICE@X.COM " and "alice@x.com" are the same
identifier. Uniqueness is ultimately enforced by the UNIQUE constraints on
users.email and users.username: the pre-insert lookup gives a friendly
early answer, and an IntegrityError from a racing insert is converted to
the same ConflictError instead of bubbling up as a 500.

Rows returned here include the password digest. Only the Authenticator and
the Access Gate call the store, and both convert rows to Principal before
anything else sees them.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskgate.db.models import User, utcnow
from taskgate.errors import ConflictError

logger = structlog.get_logger()


def normalize_identifier(email: str) -> str:
    return email.strip().lower()


def normalize_display_name(username: str) -> str:
    return username.strip()


class CredentialStore:
    """Lookup and creation of user records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_identifier(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == normalize_identifier(email))
        )
        return result.scalars().first()

    async def find_by_display_name(self, username: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.username == normalize_display_name(username))
        )
        return result.scalars().first()

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def create(self, email: str, username: str, password_hash: str) -> User:
        """Insert a new user.

        Raises ConflictError if the email or username is already taken,
        whether detected up front or by the database constraint.
        """
        email = normalize_identifier(email)
        username = normalize_display_name(username)

        taken = await self.db.execute(
            select(User.id).where(or_(User.email == email, User.username == username))
        )
        if taken.first() is not None:
            raise ConflictError()

        user = User(email=email, username=username, password_hash=password_hash)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("auth.register_race_lost")
            raise ConflictError()
        return user

    async def update_password_hash(self, user: User, password_hash: str) -> None:
        user.password_hash = password_hash
        user.updated_at = utcnow()
        await self.db.commit()
