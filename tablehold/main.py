"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tablehold.api.router import router as v1_router
from tablehold.config import get_settings
from tablehold.database import close_db, create_tables, get_db_context
from tablehold.exceptions import InvalidInputError, ReservationError
from tablehold.redis_client import close_redis, get_redis
from tablehold.schemas.common import ErrorResponse
from tablehold.tasks import ExpirySweeper, background_tasks


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting Table Hold API...")

    if settings.CREATE_TABLES:
        await create_tables()
        logger.info("Database tables ready")

    await get_redis()
    logger.info("Redis connection established")

    await background_tasks.start(ExpirySweeper(get_db_context))

    yield

    # Shutdown
    logger.info("Shutting down Table Hold API...")

    await background_tasks.stop()

    await close_redis()
    logger.info("Redis connection closed")

    await close_db()


async def reservation_error_handler(request: Request, exc: ReservationError):
    """Map domain errors to their status and stable error code."""
    logger.info(f"{exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.code, detail=exc.message).model_dump(),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as invalid input."""
    errors = exc.errors()
    detail = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(
        status_code=InvalidInputError.status_code,
        content=ErrorResponse(error=InvalidInputError.code, detail=detail).model_dump(),
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.DEBUG else None,
        },
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
## Table Hold API

Time-boxed table holds and reservations for a single venue.

### Workflow
1. List regions and available slots for a date
2. Check a slot for your party, or ask for alternatives
3. Hold a table with your session token (expires after a few minutes)
4. Confirm the hold with your contact details

### Live updates
Connect to `/api/v1/ws/availability` and subscribe to a date to receive
`availability_changed` events; `lock_expired` is broadcast to everyone.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routers
    app.include_router(v1_router, prefix="/api")

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
        }

    app.add_exception_handler(ReservationError, reservation_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    return app


# Create application instance
app = create_app()


def run():
    """Run the application with uvicorn."""
    uvicorn.run(
        "tablehold.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
