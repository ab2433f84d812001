"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blueprint_engine import __version__
from blueprint_engine.adapters.ai import get_ai_provider
from blueprint_engine.adapters.store import SqlAlchemyBlueprintRepository
from blueprint_engine.api.routes import blueprints, health
from blueprint_engine.config import settings
from blueprint_engine.logging import get_logger, setup_logging
from blueprint_engine.services.retry_processor import RetryProcessor
from blueprint_engine.services.retry_worker import RetryWorker

# Setup logging
setup_logging()
logger = get_logger(__name__)


def build_retry_worker() -> RetryWorker:
    """Wire the retry worker to the configured database and AI provider."""
    repository = SqlAlchemyBlueprintRepository()
    processor = RetryProcessor(repository, get_ai_provider())
    return RetryWorker(processor, repository)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("application_starting", version=__version__)

    # Startup: verify database connection and create missing tables
    try:
        from blueprint_engine.db.session import init_db

        init_db()
        logger.info("database_connected")
    except Exception as e:
        logger.error("database_connection_failed", error=str(e))
        # Don't raise - let health checks report the issue

    worker: RetryWorker | None = None
    if settings.retry_worker_enabled:
        worker = build_retry_worker()
        worker.start()
    app.state.retry_worker = worker

    yield

    # Shutdown
    logger.info("application_shutting_down")
    if worker is not None:
        await worker.stop()


# Create FastAPI app
app = FastAPI(
    title="Blueprint Engine",
    description="Turns video transcripts and text into actionable habit blueprints",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health.router)
app.include_router(blueprints.router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Root endpoint with service info."""
    return {
        "name": "Blueprint Engine",
        "version": __version__,
        "docs": "/docs",
    }

