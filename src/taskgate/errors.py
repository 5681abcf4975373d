"""Error taxonomy for the auth and task layers.

Learn: Services raise these; create_app() registers one exception handler
that turns any of them into a JSON response. Messages are deliberately
generic. InvalidCredentials covers both "unknown email" and "wrong
password". Every Unauthorized carries the same detail no matter which
step of token validation failed.
"""

from typing import Optional


class TaskgateError(Exception):
    """Base for errors that map straight onto an HTTP response."""

    status_code: int = 500
    detail: str = "Internal server error"
    headers: Optional[dict[str, str]] = None

    def __init__(self, detail: Optional[str] = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ConflictError(TaskgateError):
    """Email or username already in use."""

    status_code = 409
    detail = "Email or username already in use"


class InvalidCredentialsError(TaskgateError):
    """Unknown email or wrong password; the two are indistinguishable."""

    status_code = 401
    detail = "Invalid credentials"


class UnauthorizedError(TaskgateError):
    """Missing, malformed, expired or tampered token, or principal gone."""

    status_code = 401
    detail = "Not authenticated"
    headers = {"WWW-Authenticate": "Bearer"}


class NotFoundError(TaskgateError):
    """Resource absent or owned by someone else."""

    status_code = 404
    detail = "Not found"


class ServerError(TaskgateError):
    """Infrastructure fault. Details are logged, never returned."""

    status_code = 500
