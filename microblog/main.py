"""
FastAPI Application - Microblog CMS API
"""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from microblog.auth import bearer_backend, cookie_backend, fastapi_users
from microblog.config import settings
from microblog.database import Base, engine, get_db
from microblog.database_async import async_engine
from microblog.errors import RateLimitError, ServiceError
from microblog.middleware.security import SecurityHeadersMiddleware
from microblog.models import comment, like, post, user  # noqa: F401 - metadata
from microblog.observability.logging import configure_logging
from microblog.observability.metrics import MetricsMiddleware, metrics_response
from microblog.observability.tracing import configure_tracing
from microblog.routers.comments import router as comments_router
from microblog.routers.likes import router as likes_router
from microblog.routers.posts import router as posts_router
from microblog.routers.tags import router as tags_router
from microblog.schemas.common import ErrorBody, ErrorEnvelope
from microblog.schemas.user import UserCreate, UserRead, UserUpdate
from microblog.security import limiter

logger = logging.getLogger(__name__)


# ==========================================
# Database Initialization
# ==========================================
def init_database() -> None:
    Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application")
    init_database()
    yield
    logger.info("Shutting down application")


configure_logging(settings.log_level.upper())
IS_PROD = settings.is_production


# ==========================================
# Exception handlers (define BEFORE registration)
# ==========================================
_HTTP_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    429: "RATE_LIMIT_EXCEEDED",
}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: dict[str, list[str]] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorEnvelope(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(
        body.model_dump(exclude_none=True), status_code=status_code, headers=headers
    )


async def service_error_handler(request: Request, exc: ServiceError):
    headers = None
    if isinstance(exc, RateLimitError) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}
    details = getattr(exc, "details", None) or None
    return error_response(exc.status_code, exc.code, exc.message, details, headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        field = str(error["loc"][-1]) if error.get("loc") else "body"
        details.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return error_response(400, "VALIDATION_ERROR", "Validation failed", details)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "RATE_LIMIT_EXCEEDED",
        "Too many requests. Please try again later.",
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        code = "INTERNAL_ERROR"
    else:
        code = _HTTP_CODES.get(exc.status_code, "VALIDATION_ERROR")
    return error_response(
        exc.status_code, code, str(exc.detail), headers=getattr(exc, "headers", None)
    )


async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Unhandled storage error", exc_info=exc)
    return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", exc_info=exc)
    return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


# ==========================================
# FastAPI Application
# ==========================================
app = FastAPI(
    title="Microblog CMS",
    description="Posts, tags, likes and moderated comments",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if IS_PROD else "/docs",
    redoc_url=None if IS_PROD else "/redoc",
    openapi_url=None if IS_PROD else "/openapi.json",
)
# Order: compression → rate-limit/metrics → security → correlation id
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")
app.state.limiter = limiter
app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(SQLAlchemyError, storage_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)
# CORS: strict allowlist
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Accept", "Content-Type", "Authorization"],
    )
# Optional tracing
if settings.enable_tracing and settings.otlp_endpoint:
    configure_tracing(
        app,
        [engine, async_engine.sync_engine],
        settings.service_name,
        settings.environment,
        settings.otlp_endpoint,
        settings.otlp_headers,
    )


# ==========================================
# Health (minimal in prod)
# ==========================================
@app.get("/healthz", tags=["system"], summary="Health check", response_model=dict)
def health_check(db: Session = Depends(get_db)) -> dict:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="unhealthy"
        )
    if IS_PROD:
        return {"status": "healthy"}
    return {"status": "healthy", "database": "connected", "version": app.version}


# ==========================================
# Metrics (Protected with HTTP Basic Auth)
# ==========================================
security = HTTPBasic(auto_error=False)


def verify_metrics_auth(
    credentials: HTTPBasicCredentials | None = Depends(security),
) -> None:
    """Verify HTTP Basic Auth credentials when a metrics password is set."""
    if not settings.metrics_password:
        return

    valid = credentials is not None and (
        secrets.compare_digest(credentials.username, settings.metrics_username)
        & secrets.compare_digest(credentials.password, settings.metrics_password)
    )
    if not valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )


@app.get("/metrics", include_in_schema=False)
def metrics(_: None = Depends(verify_metrics_auth)):
    """Prometheus metrics endpoint.

    Set METRICS_USERNAME and METRICS_PASSWORD environment variables.
    """
    return metrics_response()


# ==========================================
# Routers
# ==========================================
app.include_router(posts_router)
app.include_router(likes_router)
app.include_router(comments_router)
app.include_router(tags_router)
# Auth: cookie sessions for browsers, bearer tokens for API clients
app.include_router(
    fastapi_users.get_auth_router(cookie_backend),
    prefix="/api/auth/cookie",
    tags=["auth"],
)
app.include_router(
    fastapi_users.get_auth_router(bearer_backend),
    prefix="/api/auth/jwt",
    tags=["auth"],
)
app.include_router(
    fastapi_users.get_register_router(UserRead, UserCreate),
    prefix="/api/auth",
    tags=["auth"],
)
app.include_router(
    fastapi_users.get_users_router(UserRead, UserUpdate),
    prefix="/api/users",
    tags=["users"],
)
