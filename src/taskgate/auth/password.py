"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks. The digest
embeds its own cost factor ("$2b$12$..."), so raising the configured
rounds later never invalidates stored digests. verify() reads the cost
from the digest, and needs_rehash() tells the login path to upgrade it.
"""

import bcrypt

# bcrypt only looks at the first 72 bytes of input.
MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


class PasswordHasher:
    """Salted one-way hashing with a configurable work factor."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password with a fresh random salt.

        Learn: Two calls with the same password never produce the same
        digest, because gensalt() draws a new salt each time.
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_encode(password), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a password against a stored digest.

        checkpw compares in constant time. Malformed digests verify as False.
        """
        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        """True when the digest was produced with a different cost factor."""
        return digest_rounds(password_hash) != self.rounds


def digest_rounds(password_hash: str) -> int | None:
    """Extract the cost factor from a "$2b$<rounds>$<salt+hash>" digest."""
    parts = password_hash.split("$")
    if len(parts) != 4 or not parts[2].isdigit():
        return None
    return int(parts[2])
