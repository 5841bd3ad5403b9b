"""
FastAPI application for the Inventra inventory and checkout backend.

To run: uvicorn inventra.main:app --reload
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from inventra.core.config import settings
from inventra.core.database import init_db, close_db, get_engine, check_db_connection
from inventra.api.v1 import api_router
from inventra.error_handlers import (
    AppException,
    app_exception_handler,
    validation_exception_handler,
    sqlalchemy_exception_handler,
    generic_exception_handler,
)
from inventra.logging_config import setup_logging
from inventra.middleware import (
    limiter,
    RequestLoggingMiddleware,
    rate_limit_exceeded_handler,
    http_exception_handler,
)

logger = setup_logging(
    settings.log_level,
    settings.log_dir,
    settings.log_max_bytes,
    settings.log_backup_count,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager: the database pool lives exactly as long as the app.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {'Development' if settings.debug else 'Production'}")

    get_engine()
    if settings.auto_create_tables:
        # Development only - use Alembic migrations in production
        logger.info("Creating database tables")
        await init_db()

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")
    await close_db()
    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Inventra - multi-branch stock ledger and point-of-sale checkout",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

app.state.limiter = limiter

# Middleware
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include API routers
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Liveness plus database reachability."""
    database_ok = await check_db_connection()
    return {
        "ok": database_ok,
        "app": settings.app_name,
        "version": settings.app_version,
        "database": "up" if database_ok else "down",
    }


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "inventra.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug
    )


if __name__ == "__main__":
    run()
