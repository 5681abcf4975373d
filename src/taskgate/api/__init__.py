"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Health and auth routers are open. The tasks router has no
router-level auth dependency because each task route already needs the
Principal itself (to build its TaskService), and declares it via
Depends(get_current_user).
"""

from fastapi import APIRouter

from taskgate.api.auth import router as auth_router
from taskgate.api.health import router as health_router
from taskgate.api.tasks import router as tasks_router

api_router = APIRouter(prefix="/api/v1")

# Open routes — no auth required (except /auth/me)
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — every handler resolves the current principal
api_router.include_router(tasks_router, tags=["tasks"])
