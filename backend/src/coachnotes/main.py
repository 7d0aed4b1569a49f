# Main application entry point
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api import health_router, notes_router, search_router
from .config import get_settings
from .core.exceptions import CoachNotesError
from .core.logging import LoggingMiddleware, get_logger, setup_logging
from .core.redis_client import RedisClient
from .core.schemas.common import ErrorResponse
from .database import create_tables
from .security import EncryptionCodec

# Setup logging first
setup_logging()
logger = get_logger("main")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(
        "Starting Coach Notes application",
        extra={"version": __version__, "environment": settings.environment, "debug": settings.debug},
    )

    app.state.codec = EncryptionCodec.from_settings(settings)
    if not app.state.codec.is_configured:
        logger.warning("No note encryption key configured, encrypted notes will be rejected")

    # Initialize Redis connection
    redis_client = RedisClient(settings)
    try:
        await redis_client.connect()
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}. Continuing without search cache...")
    app.state.redis = redis_client

    # Allow tests to skip touching the real DB (e.g., when using SQLite in-memory)
    if os.getenv("COACHNOTES_SKIP_LIFESPAN_DB") == "1":
        logger.info("Skipping DB table creation due to COACHNOTES_SKIP_LIFESPAN_DB=1")
    else:
        try:
            await create_tables()
            logger.info("Database tables created/verified")
        except Exception as e:
            logger.error("Failed to create database tables", exc_info=e)
            raise

    yield

    # Shutdown
    logger.info("Shutting down Coach Notes application")
    try:
        await redis_client.disconnect()
        logger.info("Redis connection closed")
    except Exception as e:
        logger.warning(f"Redis disconnect failed: {e}")


app = FastAPI(
    title="Coach Notes",
    description="Private coach notes with encryption, access control, audit trail and search",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(CoachNotesError)
async def coach_notes_error_handler(request: Request, exc: CoachNotesError):
    """Render domain errors with the standard error body."""
    body = ErrorResponse(error=exc.error, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Anything unclassified is a generic internal error; details stay in the logs."""
    logger.error(
        "Unhandled error",
        extra={"path": request.url.path, "exception_type": type(exc).__name__},
    )
    body = ErrorResponse(error="InternalError", message="Internal error")
    return JSONResponse(status_code=500, content=body.model_dump(mode="json"))


# Add logging middleware
app.add_middleware(LoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(notes_router, prefix="/api")
app.include_router(search_router, prefix="/api")
app.include_router(health_router, prefix="/api")


# Root endpoint
@app.get("/")
async def root():
    return {"message": "Coach Notes API"}


# API root endpoint for better navigation
@app.get("/api/")
async def api_root():
    return {
        "message": "Coach Notes API",
        "version": __version__,
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "endpoints": {
            "notes": "/api/notes/",
            "search": "/api/search/",
            "health": "/api/health/"
        }
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("coachnotes.main:app", host=settings.host, port=settings.port, reload=settings.reload)
