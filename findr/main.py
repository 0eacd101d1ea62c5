import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from findr.config import settings
from findr.api.v1.router import api_router
from findr.core.exceptions import FindrError, PersistenceFailure
from findr.db.session import init_db, close_db
from findr.db.redis import init_redis, close_redis
from findr.core.middleware import (
    SecurityHeadersMiddleware,
    RequestLoggingMiddleware,
    RequestSizeLimitMiddleware,
)
import findr.models  # Register models for create_all


logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    configure_logging()
    await init_db()
    await init_redis()
    logger.info("%s started in %s mode", settings.APP_NAME, settings.ENVIRONMENT)

    yield

    await close_db()
    await close_redis()
    logger.info("%s shutting down", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="Co-founder matching: profiles, swipe discovery and mutual matches",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
    expose_headers=["X-Request-ID"],
    max_age=600,
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)


@app.exception_handler(FindrError)
async def findr_error_handler(request: Request, exc: FindrError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


@app.exception_handler(SQLAlchemyError)
async def persistence_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "Storage error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    failure = PersistenceFailure()
    return JSONResponse(status_code=failure.status_code, content={"detail": failure.message})


app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health")
async def health_check():
    """Verifies database and Redis connectivity."""
    from findr.db.session import async_session_maker
    from findr.db.redis import get_redis

    health_status = {
        "status": "healthy",
        "services": {
            "database": {"status": "unknown", "latency_ms": None},
            "redis": {"status": "unknown", "latency_ms": None},
        },
    }

    try:
        start = time.time()
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
        health_status["services"]["database"] = {
            "status": "healthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
        }
    except Exception as e:
        health_status["services"]["database"] = {"status": "unhealthy", "error": str(e)[:100]}
        health_status["status"] = "degraded"

    try:
        start = time.time()
        get_redis().ping()
        health_status["services"]["redis"] = {
            "status": "healthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
        }
    except Exception as e:
        health_status["services"]["redis"] = {"status": "unhealthy", "error": str(e)[:100]}
        health_status["status"] = "degraded"

    return health_status
