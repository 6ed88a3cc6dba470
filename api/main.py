"""
api/main.py -- FastAPI application entry point for Inkwell.

Run with:      uvicorn asgi:app --reload
               python asgi.py

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects unexpected Host headers (ALLOWED_HOSTS)
  2. CORSMiddleware        -- the SPA front end is served from another origin
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan builds the shared resources once and parks them on app.state:
  account_store      AccountStore   (auth/store.py)
  blog_store         BlogStore      (blog/store.py)
  identity_verifier  IdentityVerifier (auth/federation.py)
  upload_signer      UploadSigner   (media/uploads.py)
Route handlers read them from request.app.state; tests swap them in a
patched lifespan (see tests/conftest.py).
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.blogs import router as blogs_router
from api.routes.uploads import router as uploads_router
from api.routes.users import router as users_router
from auth.federation import IdentityVerifier
from auth.store import AccountStore
from blog.store import BlogStore
from core.config import get_settings
from core.errors import InkwellError
from media.uploads import UploadSigner

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("inkwell.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the stores and external clients on startup, release them on shutdown.

    AccountStore comes first: BlogStore joins against the accounts table and
    creates it too if missing, but the account schema belongs to auth/.
    """
    logger.info("Inkwell API starting up")
    app.state.account_store = AccountStore()
    app.state.blog_store = BlogStore()
    logger.info("Database initialized")
    app.state.identity_verifier = IdentityVerifier.from_settings()
    if not _settings.firebase_project_id:
        logger.warning("FIREBASE_PROJECT_ID not set -- /google-auth will reject every assertion")
    app.state.upload_signer = UploadSigner.from_settings()
    logger.info("Upload signer ready (bucket=%s)", _settings.s3_bucket)

    yield

    app.state.blog_store.close()
    app.state.account_store.close()
    logger.info("Inkwell API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Inkwell API",
    description="Blogging backend: accounts, federated sign-in, authoring, feeds, and search.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


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

app.include_router(auth_router, tags=["Auth"])
app.include_router(blogs_router, tags=["Blogs"])
app.include_router(users_router, tags=["Users"])
app.include_router(uploads_router, tags=["Uploads"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients branch on
# error.code and show error.message.
# ---------------------------------------------------------------------------


@app.exception_handler(InkwellError)
async def inkwell_error_handler(request: Request, exc: InkwellError) -> JSONResponse:
    """Render domain errors raised anywhere below the route layer."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(exclude_none=True),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or params fail validation."""
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
    """Wrap framework HTTP errors (404 on unknown paths, 405, ...) in the same envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(exclude_none=True),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(exclude_none=True),
    )


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=VERSION)
