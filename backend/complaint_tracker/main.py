"""
FastAPI application factory.

Startup sequence:
  1. Validate settings
  2. Check DB connectivity (warn on failure — do not crash, /health will report it)
  3. Mount all API routers

Every response uses the envelope {success, message?, data?, errors?}.  Domain
errors (complaint_tracker.core.errors) map to their own status codes, request
validation failures to 400, unique and foreign-key violations to 409 and
400, and anything unexpected to a generic 500 whose
stack trace is only included in development.
"""
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from complaint_tracker.api.admin import router as admin_router
from complaint_tracker.api.auth import router as auth_router
from complaint_tracker.api.health import router as health_router
from complaint_tracker.api.student import router as student_router
from complaint_tracker.api.worker import router as worker_router
from complaint_tracker.core.config import get_settings
from complaint_tracker.core.db import check_db_connection
from complaint_tracker.core.errors import AppError, from_integrity_error
from complaint_tracker.schemas.common import ErrorResponse

settings = get_settings()
logger = logging.getLogger(__name__)

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting complaint tracker backend (env=%s)", settings.environment)
    db_ok = await check_db_connection()
    if db_ok:
        logger.info("Database connection: OK")
    else:
        logger.warning("Database connection: FAILED — check DB_HOST / credentials")

    logger.info("Advisor mode: %s", settings.advisor_mode)

    yield

    logger.info("Shutting down complaint tracker backend")


def _envelope(status_code: int, message: str, errors: list[dict] | None = None, **extra) -> JSONResponse:
    content = ErrorResponse(message=message, errors=errors).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content={**content, **extra})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Complaint Resolution Tracker — API",
        version="1.0.0",
        description="Student complaint tracking with role-based dashboards",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # ------------------------------------------------------------------ #
    # CORS — only the configured frontend outside development
    # ------------------------------------------------------------------ #
    origins = ["*"] if settings.is_development else [settings.frontend_url]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------ #
    # Request logging (development)
    # ------------------------------------------------------------------ #
    if settings.is_development:
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            logger.debug("%s %s", request.method, request.url.path)
            return await call_next(request)

    # ------------------------------------------------------------------ #
    # Exception handlers
    # ------------------------------------------------------------------ #
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _envelope(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        return _envelope(status.HTTP_400_BAD_REQUEST, "Validation failed", errors=errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return _envelope(exc.status_code, message)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        mapped = from_integrity_error(exc)
        if mapped is None:
            return await unhandled_exception_handler(request, exc)
        logger.info("Constraint violation on %s %s: %s", request.method, request.url.path, exc.orig)
        return _envelope(mapped.status_code, mapped.message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url)
        extra = {"stack": traceback.format_exc()} if settings.is_development else {}
        return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", **extra)

    # ------------------------------------------------------------------ #
    # Routers
    # ------------------------------------------------------------------ #
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(student_router)
    app.include_router(worker_router)
    app.include_router(admin_router)

    return app


app = create_app()
