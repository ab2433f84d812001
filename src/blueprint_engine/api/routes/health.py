"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from blueprint_engine.api.deps import AIProviderDep, RepositoryDep
from blueprint_engine.config import settings
from blueprint_engine.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    components: dict[str, bool] | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    database: bool
    ai_provider: bool


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint that verifies the API is running.",
)
async def health_check() -> HealthResponse:
    """Basic health check - is the API up?

    Reports which components are configured, without calling them.
    """
    from blueprint_engine import __version__

    return HealthResponse(
        status="healthy",
        version=__version__,
        components={
            "ai_provider": settings.ai_provider != "stub",
            "retry_worker": settings.retry_worker_enabled,
        },
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Readiness check that verifies the database and AI provider.",
)
async def readiness_check(repository: RepositoryDep, ai_provider: AIProviderDep) -> ReadinessResponse:
    """Readiness check including dependencies."""
    database_ok = await repository.health_check()

    ai_ok = False
    try:
        ai_ok = await ai_provider.health_check()
    except Exception as e:
        logger.error("ai_provider_health_check_failed", provider=ai_provider.name, error=str(e))

    return ReadinessResponse(
        ready=database_ok and ai_ok,
        database=database_ok,
        ai_provider=ai_ok,
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Simple liveness probe for Kubernetes.",
)
async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe - is the process alive?"""
    return {"status": "alive"}
