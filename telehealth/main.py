import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware

# Load environment variables as early as possible
load_dotenv()

from .config import Settings, get_settings
from .database import Database
from .exceptions import (
    http_exception_handler,
    integrity_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from .middleware import ErrorHandlingMiddleware, LoggingMiddleware, RateLimitMiddleware, SecurityMiddleware
from .routers import (
    appointments_router,
    auth_router,
    consultations_router,
    hospitals_router,
    notifications_router,
    payments_router,
    prescriptions_router,
    users_router,
)

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.APP_NAME}...")
    app.state.db_init_ok = True
    app.state.db_init_error = None
    try:
        app.state.db.create_db_and_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        # Do not crash the app; report via health endpoint
        app.state.db_init_ok = False
        app.state.db_init_error = str(e)
        logger.exception("Database initialization failed")
    if not settings.secret_key_configured:
        logger.warning("SECRET_KEY is not configured; login and registration will fail")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")
    app.state.db.dispose()


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url=("/docs" if settings.DOCS_ENABLED else None),
        redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
        openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None),
    )
    app.state.settings = settings
    app.state.db = database or Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

    # Exception handlers
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler(settings.DEBUG))

    # Middleware
    app.add_middleware(ErrorHandlingMiddleware, debug=settings.DEBUG)
    if settings.RATE_LIMIT_ENABLED:
        app.add_middleware(
            RateLimitMiddleware,
            limiter=InMemoryRateLimiter(),
            max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        )
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityMiddleware, api_prefix=settings.API_PREFIX)
    app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MIN_SIZE)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.allowed_methods_list,
        allow_headers=settings.allowed_headers_list,
    )

    for module in (
        auth_router,
        users_router,
        appointments_router,
        consultations_router,
        prescriptions_router,
        payments_router,
        notifications_router,
        hospitals_router,
    ):
        app.include_router(module.router, prefix=settings.API_PREFIX)

    @app.get("/health")
    def health_check(request: Request):
        db_ok = request.app.state.db_init_ok if hasattr(request.app.state, "db_init_ok") else True
        db_reachable = request.app.state.db.ping()
        return {
            "status": "healthy" if db_ok and db_reachable else "degraded",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": {
                "ok": db_ok and db_reachable,
                "error": getattr(request.app.state, "db_init_error", None),
            },
            "auth": {
                "secret_key_configured": settings.secret_key_configured,
                "jwt_algorithm": settings.ALGORITHM,
                "token_expiry_minutes": settings.ACCESS_TOKEN_EXPIRE_MINUTES,
            },
        }

    return app


app = create_app()


# ------------------------
# Run with correct PORT in local/production
# ------------------------
if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "telehealth.main:app",
        host=_settings.HOST,
        port=_settings.PORT,
        workers=1,
        log_level=_settings.LOG_LEVEL.lower(),
    )
