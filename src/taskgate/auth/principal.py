"""The authenticated identity handed to route handlers and services.

Learn: Principal is built from a User row but carries no password digest.
It is the only user representation that leaves the auth package; routes
receive it from the Access Gate and pass it explicitly into services.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime

from taskgate.db.models import User


@dataclass(frozen=True)
class Principal:
    id: uuid.UUID
    email: str
    username: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
