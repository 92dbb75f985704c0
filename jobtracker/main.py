import logging
import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from jobtracker.config import Settings, settings as default_settings
from jobtracker.core.errors import ApiError, JobNotFoundError, JobValidationError
from jobtracker.core.rate_limiter import InMemoryRateLimiter
from jobtracker.database import Database
from jobtracker.logging_config import setup_logging
from jobtracker.routers import jobs, status

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info("Starting Job Tracker API (env=%s)", settings.app_env)
    database = app.state.database or Database(settings.sqlalchemy_url)
    try:
        # Migration failures are fatal: the app must not serve a half-converted store.
        database.init()
    except Exception:
        database.dispose()
        raise
    app.state.database = database
    app.state.started_at = time.monotonic()
    try:
        yield
    finally:
        logger.info("Shutting down Job Tracker API")
        database.dispose()


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(JobNotFoundError)
    async def not_found_handler(request: Request, exc: JobNotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(JobValidationError)
    async def validation_handler(request: Request, exc: JobValidationError):
        logger.info("Validation failed on %s %s: %s", request.method, request.url.path, exc.details)
        return JSONResponse(status_code=400, content={"error": str(exc), "details": exc.details})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = {}
        for err in exc.errors():
            loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
            details[".".join(loc) or "body"] = err.get("msg", "Invalid value")
        return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        content = {"error": exc.error}
        if exc.details is not None:
            content["details"] = exc.details
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail, "statusCode": exc.status_code},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled server error on %s %s: %s", request.method, request.url.path, exc)
        content = {
            "error": str(exc) or "Internal Server Error",
            "statusCode": 500,
            "timestamp": _timestamp(),
        }
        # No stack traces in production
        if not settings.is_production:
            content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(status_code=500, content=content)


def _register_middleware(app: FastAPI, settings: Settings) -> None:
    @app.middleware("http")
    async def apply_rate_limits(request: Request, call_next):
        if request.method == "OPTIONS" or not request.url.path.startswith("/api"):
            return await call_next(request)

        limit = settings.rate_limit_max_requests
        if limit <= 0:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        decision = request.app.state.rate_limiter.allow(
            client_ip, limit=limit, window_seconds=settings.rate_limit_window_ms / 1000.0
        )
        headers = {"RateLimit-Limit": str(decision.limit), "RateLimit-Remaining": str(decision.remaining)}
        if not decision.allowed:
            logger.warning("Rate limit exceeded for %s on %s", client_ip, request.url.path)
            headers["Retry-After"] = str(decision.retry_after)
            return JSONResponse(
                status_code=429,
                content={"error": RATE_LIMIT_MESSAGE, "statusCode": 429, "timestamp": _timestamp()},
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s %d %.1f ms", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    cors_origins = [o.strip() for o in settings.cors_allow_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials="*" not in cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Build the API. The store is opened and migrated when the app starts."""
    settings = settings or default_settings
    app = FastAPI(
        title="Job Tracker API",
        description="Track job applications: list, search, create, update, delete.",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.rate_limiter = InMemoryRateLimiter()
    app.state.started_at = time.monotonic()

    _register_exception_handlers(app, settings)
    _register_middleware(app, settings)

    app.include_router(status.router)
    app.include_router(jobs.router)
    return app


setup_logging()
app = create_app()
