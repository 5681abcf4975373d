"""Auth API — registration, login, current user.

Learn: Routes for user authentication:
- POST /auth/register → create an account, returns user + token
- POST /auth/login → email/password → user + token
- GET /auth/me → current user info (requires Bearer token)

Routes only translate HTTP to Authenticator calls. ConflictError and
InvalidCredentialsError propagate to the app's exception handler.
"""

from fastapi import APIRouter, Depends

from taskgate.auth.dependencies import get_authenticator, get_current_user
from taskgate.auth.principal import Principal
from taskgate.auth.service import AuthResult, Authenticator
from taskgate.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserRead

router = APIRouter(prefix="/auth")


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        user=UserRead.model_validate(result.principal),
        access_token=result.token,
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    authenticator: Authenticator = Depends(get_authenticator),
):
    """Create a new user account and return a token for it."""
    result = await authenticator.register(
        email=body.email, username=body.username, password=body.password
    )
    return _auth_response(result)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    authenticator: Authenticator = Depends(get_authenticator),
):
    """Login with email and password → JWT."""
    result = await authenticator.login(email=body.email, password=body.password)
    return _auth_response(result)


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(principal: Principal = Depends(get_current_user)):
    """Get the current authenticated user's info."""
    return UserRead.model_validate(principal)
