"""Ownership filter — confine every task query to its owner.

Learn: scope() adds `owner_id == principal.id` to the SQL statement itself,
before it is executed. Nothing is fetched and filtered afterwards, so a
handler can't accidentally load someone else's row. stamp() forces the
owner on new rows, ignoring any owner the client tried to send.

A task that exists but belongs to someone else is therefore invisible in
exactly the same way as a task that doesn't exist.
"""

from typing import Any, TypeVar

from taskgate.auth.principal import Principal

Stmt = TypeVar("Stmt")


class OwnershipFilter:
    """Single-owner scoping for a model with an `owner_id` column."""

    def __init__(self, model: Any):
        self.model = model

    def scope(self, principal: Principal, stmt: Stmt) -> Stmt:
        """Conjoin the owner condition onto a select/update/delete statement."""
        return stmt.where(self.model.owner_id == principal.id)

    def stamp(self, principal: Principal, values: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of `values` with owner_id set to the principal."""
        return {**values, "owner_id": principal.id}
