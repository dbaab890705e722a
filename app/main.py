"""
VibeSwipe Backend API - Main Application
"""
import logging
import sys
import traceback
import uuid
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy import text
import uvicorn

from .core.config import settings
from .core.context import build_context
from .core.exceptions import ScoringInProgressError
from .database import build_session_factory, engine, init_db, SessionLocal
from .api.v1 import api_router
from .services.scheduler_service import SchedulerService
from .services.sweeper_service import TournamentSweeper
from .services.tournament_service import TournamentService
from .utils.time_utils import to_utc_isoformat, utc_now

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)

logger = logging.getLogger(__name__)


def create_app(db_engine=None, enable_sweeper: Optional[bool] = None) -> FastAPI:
    """Build the API. Tests pass their own engine and usually disable the sweeper."""
    db_engine = db_engine if db_engine is not None else engine
    enable_sweeper = settings.SWEEPER_ENABLED if enable_sweeper is None else enable_sweeper

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        # Startup
        logger.info("Starting VibeSwipe Backend API...")

        try:
            init_db(db_engine)
            logger.info("Database initialized successfully")

            session_factory = SessionLocal if db_engine is engine else build_session_factory(db_engine)
            app.state.session_factory = session_factory

            tournament_service = TournamentService(build_context(session_factory, settings))
            app.state.tournament_service = tournament_service

            sweeper = TournamentSweeper(tournament_service)
            app.state.scheduler_service = SchedulerService(sweeper, settings.SWEEP_INTERVAL_SECONDS)
            if enable_sweeper:
                app.state.scheduler_service.start()
                logger.info("Tournament sweeper started")

            logger.info(f"API running at http://{settings.API_HOST}:{settings.API_PORT} (debug={settings.DEBUG})")

        except Exception as e:
            logger.error(f"Failed to initialize backend: {e}")
            raise

        yield  # Application runs here

        # Shutdown
        logger.info("Shutting down VibeSwipe Backend API...")

        try:
            app.state.scheduler_service.shutdown()
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Crypto price-direction prediction tournaments with reveal-time scoring",
        version="1.0.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        lifespan=lifespan,
        redirect_slashes=False
    )

    # Initialize rate limiter
    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.RATE_LIMIT])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ScoringInProgressError)
    async def scoring_in_progress_handler(request: Request, exc: ScoringInProgressError):
        return JSONResponse(
            status_code=409,
            content={"detail": exc.message, "code": exc.code}
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unexpected errors."""
        # Generate a unique error ID for tracking
        error_id = str(uuid.uuid4())[:8]

        # Always log the full error on the server
        logger.error(
            f"[ERROR_ID: {error_id}] Unhandled exception on {request.method} {request.url.path}",
            exc_info=True
        )

        if settings.DEBUG:
            # Development: return detailed error for debugging
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "detail": str(exc),
                    "error_id": error_id,
                    "type": type(exc).__name__,
                    "path": str(request.url.path),
                    "traceback": traceback.format_exc()
                }
            )
        else:
            # Production: return generic error, hide internal details
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "detail": "Operation failed. Please try again later.",
                    "error_id": error_id
                }
            )

    # Health check endpoint
    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint for monitoring."""
        try:
            with request.app.state.session_factory() as db:
                db.execute(text("SELECT 1"))

            scheduler_service = request.app.state.scheduler_service

            return {
                "status": "healthy",
                "timestamp": to_utc_isoformat(utc_now()),
                "service": "vibeswipe-api",
                "version": "1.0.0",
                "services": {
                    "database": {
                        "status": "connected"
                    },
                    "scheduler": scheduler_service.get_status()
                }
            }

        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "error": str(e)}
            )

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return app


app = create_app()


if __name__ == "__main__":
    # Run the application
    uvicorn.run(
        "app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
