"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (database engine).
Middleware, CORS, exception handlers and routers are all registered here.

Error mapping lives in one place: services raise TaskgateError subclasses,
and the handlers below turn them into `{"detail": ...}` responses.
Store, connection and any other unexpected faults become a bare 500; the
full details go to the log only.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from taskgate import __version__
from taskgate.api import api_router
from taskgate.config import settings
from taskgate.errors import ServerError, TaskgateError
from taskgate.logs import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "taskgate.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    yield

    logger.info("taskgate.shutdown")

    # Close database engine
    from taskgate.db.engine import engine
    await engine.dispose()


async def taskgate_error_handler(request: Request, exc: TaskgateError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the fault in full and answer with a bare ServerError.

    Learn: Registered for store and connection faults (SQLAlchemyError,
    OSError), which are handled inside the middleware stack so the response
    still gets its X-Request-ID. Registered again for Exception as the last
    resort, which Starlette runs from its outermost error middleware.
    """
    logger.exception(
        "taskgate.server_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    error = ServerError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging(settings.log_level, json=settings.log_json)

    app = FastAPI(
        title="Taskgate",
        description="Per-user task manager with JWT authentication",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from taskgate.middleware.request_id import RequestIdMiddleware
    from taskgate.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(TaskgateError, taskgate_error_handler)
    app.add_exception_handler(SQLAlchemyError, server_error_handler)
    app.add_exception_handler(OSError, server_error_handler)
    app.add_exception_handler(Exception, server_error_handler)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: taskgate.main:app)
app = create_app()
