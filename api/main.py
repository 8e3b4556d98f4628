"""
api/main.py -- FastAPI application entry point for AssetVault.

Exposes session login and owner-scoped asset storage over HTTP.

Run with:      python main.py serve
               uvicorn asgi:app --reload

Lifespan handles startup (settings, engine, stores, auth service, session
sweep task) and shutdown (cancel the sweep, dispose the engine)
symmetrically. Route handlers reach their collaborators only through
app.state; nothing here is a module-level store handle.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException

from api.models import ErrorResponse, StatusResponse
from api.routes.assets import router as assets_router
from api.routes.auth import router as auth_router
from assets.store import AssetStore
from auth.service import AuthService
from auth.store import SessionStore, UserStore
from core.config import get_settings
from core.database import create_db_engine
from core.errors import ServiceError, StoreFailure

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("assetvault.api")

# ---------------------------------------------------------------------------
# Background session sweep
# ---------------------------------------------------------------------------


async def _sweep_loop(app: FastAPI, interval_seconds: int) -> None:
    """Delete expired session rows every interval_seconds.

    Validation never deletes, so without this task expired rows would only
    disappear on the owner's next login. Any failed sweep is logged and
    retried on the next tick, so one bad run cannot end the task unnoticed.
    CancelledError (a BaseException) from shutdown still unwinds the loop.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await run_in_threadpool(app.state.auth_service.purge_expired_sessions)
        except Exception:
            logger.exception("Session sweep failed")


# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters:
      1. Engine first -- creates missing tables before any store is used.
      2. Stores and AuthService second -- built with the engine injected.
      3. Sweep task last -- references app.state.auth_service.
    """
    settings = get_settings()
    logger.info("AssetVault API starting up")
    engine = create_db_engine(settings.database_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.auth_service = AuthService(UserStore(engine), SessionStore(engine))
    app.state.asset_store = AssetStore(engine)
    logger.info("Storage initialized (%s)", engine.url.render_as_string(hide_password=True))
    app.state.sweep_task = asyncio.create_task(_sweep_loop(app, settings.session_sweep_interval_seconds))

    yield

    app.state.sweep_task.cancel()
    engine.dispose()
    logger.info("AssetVault API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="AssetVault API",
    description="Authenticated, owner-scoped binary asset storage.",
    version="1.0.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Wall-clock time before and after call_next gives the latency.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(assets_router, prefix="/api", tags=["Assets"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same {"error": "..."} envelope. The message is the
# category's public text; the internal reason only goes to the log.
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump(), headers=headers)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Collapse the typed failure taxonomy into its public category."""
    actor = getattr(request.state, "owner_id", None)
    client = request.client.host if request.client else "unknown"
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(
        level,
        "%s on %s %s user=%s ip=%s: %s",
        exc.__class__.__name__,
        request.method,
        request.url.path,
        actor,
        client,
        exc,
    )
    return _error(exc.status_code, exc.public_message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the request body is not valid JSON of the expected shape."""
    logger.info("Malformed request on %s %s: %d error(s)", request.method, request.url.path, len(exc.errors()))
    return _error(400, "invalid JSON")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return the error envelope for routing-level errors (404 unknown path, 405)."""
    message = exc.detail if isinstance(exc.detail, str) else f"http {exc.status_code}"
    return _error(exc.status_code, message.lower(), headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, StoreFailure.public_message)


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No authentication.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health() -> StatusResponse:
    """Return API liveness."""
    return StatusResponse()
