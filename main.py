# Import necessary FastAPI components
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging
from redis.asyncio import Redis

# Import application routes and custom error handlers
from src.routers import (
    search_routes,
    student_routes,
    behavior_routes,
    misdemeanor_routes,
    counseling_routes,
    shadow_parent_routes,
    notification_routes
)
from src.services.behavior.base import ValidationError as BehaviorValidationError
from src.utils.custom_utils import utcnow
from src.utils.exception_handlers import (
    behavior_validation_error_handler,
    http_exception_handler,
    pydantic_validation_error_handler,
    sqlalchemy_exception_handler,
    validation_exception_handler
)

# Import middleware
from src.middleware.logging_middleware import LoggingMiddleware, RequestIDMiddleware

# Import configuration
from src.core.config import settings

# Import database
from src import database
from src.database import init_db, close_db

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


# Lifespan context manager for startup and shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Initialize application state
    app.state.settings = settings

    # Initialize database connection
    logger.info("Initializing database connection...")
    await init_db()
    logger.info("Database connection initialized successfully")

    # Initialize Redis connection for search caching
    try:
        redis_url = settings.redis_url
        logger.info(f"Connecting to Redis at: {redis_url}")

        redis = Redis.from_url(
            url=redis_url,
            decode_responses=True,
            socket_timeout=5,  # Redis timeout
            socket_connect_timeout=5  # Redis connection timeout
        )
        await redis.ping()
        app.state.redis = redis
        logger.info("Redis connection established successfully")
    except Exception as e:
        logger.warning(f"Redis connection failed: {str(e)}. Search results will not be cached.")
        app.state.redis = None

    yield

    # Shutdown: Clean up resources
    logger.info("Closing database connection...")
    await close_db()
    logger.info("Database connection closed successfully")

    # Close Redis connection if it exists
    if getattr(app.state, 'redis', None):
        try:
            await app.state.redis.close()
            logger.info("Redis connection closed successfully")
        except Exception as e:
            logger.warning(f"Error closing Redis connection: {str(e)}")


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="API for recording and searching student behaviour: incidents, merits, misdemeanor policies and pastoral care",
    version=settings.app_version,
    default_response_class=ORJSONResponse,
    lifespan=lifespan
)

# CORS Configuration
logger.info(f"Effective CORS Origins: {settings.cors_origins}")

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=settings.cors_methods,
    allow_headers=settings.cors_headers,
)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# Added last so it runs first and the request ID is available to logging
app.add_middleware(RequestIDMiddleware)

# Register custom exception handlers
# These ensure consistent error responses across the API
app.add_exception_handler(
    HTTPException,  # Handle general HTTP exceptions
    http_exception_handler
)
app.add_exception_handler(
    RequestValidationError,  # Handle request validation errors
    validation_exception_handler
)
app.add_exception_handler(
    ValidationError,  # Handle Pydantic validation errors
    pydantic_validation_error_handler
)
app.add_exception_handler(
    BehaviorValidationError,  # Handle service-level validation errors
    behavior_validation_error_handler
)
app.add_exception_handler(
    SQLAlchemyError,  # Handle database-related errors
    sqlalchemy_exception_handler
)


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint for monitoring system status

    Returns a status response indicating the API is operational and the status of its dependencies.
    """
    health_status = {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "version": settings.app_version,
        "dependencies": {
            "redis": "unknown",
            "database": "unknown"
        }
    }

    # Check Redis health
    try:
        if getattr(request.app.state, 'redis', None):
            redis_ping = await request.app.state.redis.ping()
            health_status["dependencies"]["redis"] = "healthy" if redis_ping else "unhealthy"
        else:
            health_status["dependencies"]["redis"] = "not_configured"
    except Exception as e:
        logger.error(f"Redis health check error: {str(e)}")
        health_status["dependencies"]["redis"] = "unhealthy"

    # Check database health
    try:
        if database.engine is None:
            health_status["dependencies"]["database"] = "not_configured"
        else:
            async with database.engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
            health_status["dependencies"]["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check error: {str(e)}")
        health_status["dependencies"]["database"] = "unhealthy"

    # Redis is optional; only the database makes the service unhealthy
    if health_status["dependencies"]["database"] == "unhealthy":
        health_status["status"] = "unhealthy"

    return ORJSONResponse(content=health_status)


# Include all routers with appropriate prefixes
api_prefix = settings.api_prefix

for router_module in (
    search_routes,
    student_routes,
    behavior_routes,
    misdemeanor_routes,
    counseling_routes,
    shadow_parent_routes,
    notification_routes,
):
    app.include_router(router_module.router, prefix=api_prefix)
