"""
api/main.py -- FastAPI application entry point for Chirpy.

Exposes the authentication core over HTTP (account creation, login, access
token refresh and refresh token revocation) together with chirps, the Polka
billing webhook, operator metrics and the static site under /app.

Run with:      python main.py serve
               uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. log_requests          -- one access-log line per request, counts /app hits

Lifespan opens the stores and the hit counter on startup and disposes of the
database engine on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from api.metrics import HitCounter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.admin import router as admin_router
from api.routes.auth import router as auth_router
from api.routes.chirps import router as chirps_router
from api.routes.webhooks import router as webhooks_router
from auth.errors import HashingError, PersistenceError
from auth.refresh import RefreshTokenStore
from auth.store import UserStore
from chirps.store import ChirpStore
from core.config import get_settings

API_VERSION = "0.1.0"

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("chirpy.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores and hit counter on startup; dispose of the engine on shutdown.

    Settings are resolved here, so a missing SECRET_KEY stops the process
    before the first request is accepted.
    """
    settings = get_settings()
    logger.info("Chirpy API starting up (platform=%s)", settings.platform or "unset")
    app.state.user_store = UserStore(settings.db_url)
    app.state.refresh_store = RefreshTokenStore(
        app.state.user_store,
        ttl=timedelta(days=settings.refresh_token_expire_days),
    )
    app.state.chirp_store = ChirpStore(app.state.user_store.engine)
    app.state.hit_counter = HitCounter()
    logger.info("Stores initialized")

    yield

    app.state.user_store.close()
    logger.info("Chirpy API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Chirpy API",
    description="Accounts, login and token lifecycle for Chirpy.",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=["localhost", "127.0.0.1", "*.localhost"],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost", "http://localhost:8080", "http://127.0.0.1"],
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. The Authorization header is never logged.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    path = request.url.path
    if path == "/app" or path.startswith("/app/"):
        request.app.state.hit_counter.increment()
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
app.include_router(chirps_router, prefix="/api", tags=["Chirps"])
app.include_router(webhooks_router, prefix="/api", tags=["Webhooks"])
app.include_router(admin_router, prefix="/admin", tags=["Admin"])

# Static site. Every request under /app counts as a visit (see log_requests).
app.mount("/app", StaticFiles(directory=STATIC_DIR, html=True, check_dir=False), name="app")


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with a {"code", "message"} dict as
    detail. When detail is already a dict, use it directly as the error field.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=exc.headers,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
        headers=exc.headers,
    )


async def auth_backend_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Storage or KDF failure inside the auth core.

    The client gets a generic 500. The failure code is logged so operators can
    tell a database outage from Argon2 running out of memory.
    """
    logger.error("Auth backend failure on %s %s: %s", request.method, request.url.path, getattr(exc, "code", exc))
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


app.add_exception_handler(PersistenceError, auth_backend_error_handler)
app.add_exception_handler(HashingError, auth_backend_error_handler)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state.
# ---------------------------------------------------------------------------


@app.get("/api/healthz", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, current version and database reachability."""
    db_ok = request.app.state.user_store.ping()
    return HealthResponse(
        version=API_VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
