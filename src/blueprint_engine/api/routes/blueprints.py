"""Blueprint request endpoints."""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, status
from pydantic import BaseModel, Field

from blueprint_engine.adapters.store.base import BlueprintNotFoundError
from blueprint_engine.api.deps import BlueprintServiceDep, CurrentUserDep, ProcessorDep
from blueprint_engine.domain.enums import BlueprintStatus, ContentType
from blueprint_engine.domain.models import Blueprint, RetryJob
from blueprint_engine.logging import get_logger
from blueprint_engine.services.blueprints import (
    BlueprintConflictError,
    BlueprintNotRetriableError,
    BlueprintValidationError,
)
from blueprint_engine.services.retry_processor import RetryProcessor

router = APIRouter(prefix="/blueprints", tags=["Blueprints"])
logger = get_logger(__name__)


class CreateBlueprintRequest(BaseModel):
    """Request to generate a blueprint."""

    goal: str = Field(..., description="What the user wants to achieve (10-500 characters)")
    content_type: ContentType = Field(..., description="youtube or text")
    content: str = Field(..., description="Transcript or text the blueprint is built from")
    source_url: str | None = Field(None, description="YouTube video URL (required for youtube)")
    title: str | None = Field(None, max_length=255)


class BlueprintSubmitResponse(BaseModel):
    """Response when a blueprint is queued for generation."""

    blueprint_id: UUID
    job_id: UUID
    status: BlueprintStatus
    message: str


class BlueprintResponse(BaseModel):
    """A blueprint record."""

    id: UUID
    goal: str
    content_source: str
    content_type: ContentType
    status: BlueprintStatus
    title: str | None = None
    ai_output: dict[str, Any] | None = None
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, blueprint: Blueprint) -> "BlueprintResponse":
        return cls(
            id=blueprint.id,
            goal=blueprint.goal,
            content_source=blueprint.content_source,
            content_type=blueprint.content_type,
            status=blueprint.status,
            title=blueprint.title,
            ai_output=blueprint.ai_output.to_dict() if blueprint.ai_output else None,
            created_at=blueprint.created_at,
        )


async def run_first_attempt(processor: RetryProcessor, job: RetryJob) -> None:
    """Run a freshly queued job right away instead of waiting for the worker."""
    try:
        result = await processor.process(job)
        logger.info(
            "blueprint_first_attempt_done",
            blueprint_id=str(job.blueprint_id),
            **result.to_dict(),
        )
    except Exception as e:
        # The job is still queued; the retry worker picks it up once due
        logger.error(
            "blueprint_first_attempt_error",
            blueprint_id=str(job.blueprint_id),
            job_id=str(job.id),
            error=str(e),
            exc_info=True,
        )


def _submitted(blueprint: Blueprint, job: RetryJob, message: str) -> BlueprintSubmitResponse:
    return BlueprintSubmitResponse(
        blueprint_id=blueprint.id,
        job_id=job.id,
        status=blueprint.status,
        message=message,
    )


@router.post(
    "",
    response_model=BlueprintSubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Create blueprint",
    description="Store a pending blueprint and queue its generation.",
)
async def create_blueprint(
    request: CreateBlueprintRequest,
    user: CurrentUserDep,
    service: BlueprintServiceDep,
    processor: ProcessorDep,
    background_tasks: BackgroundTasks,
) -> BlueprintSubmitResponse:
    """Create a blueprint and start generating it in the background."""
    logger.info("create_blueprint_requested", user_id=user.user_id, content_type=request.content_type.value)

    try:
        blueprint, job = await service.create(
            user,
            goal=request.goal,
            content_type=request.content_type,
            content=request.content,
            source_url=request.source_url,
            title=request.title,
            process_now=True,
        )
    except BlueprintValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    background_tasks.add_task(run_first_attempt, processor, job)
    return _submitted(blueprint, job, "Blueprint generation queued")


@router.get(
    "",
    response_model=list[BlueprintResponse],
    summary="List blueprints",
    description="List the caller's blueprints, newest first.",
)
async def list_blueprints(
    user: CurrentUserDep,
    service: BlueprintServiceDep,
    limit: int = Query(default=50, ge=1, le=200),
) -> list[BlueprintResponse]:
    blueprints = await service.list_for_user(user, limit=limit)
    return [BlueprintResponse.from_domain(b) for b in blueprints]


@router.get(
    "/{blueprint_id}",
    response_model=BlueprintResponse,
    summary="Get blueprint",
    description="Get one of the caller's blueprints.",
)
async def get_blueprint(
    blueprint_id: UUID,
    user: CurrentUserDep,
    service: BlueprintServiceDep,
) -> BlueprintResponse:
    try:
        blueprint = await service.get(user, blueprint_id)
    except BlueprintNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blueprint not found")
    return BlueprintResponse.from_domain(blueprint)


@router.post(
    "/{blueprint_id}/retry",
    response_model=BlueprintSubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Retry blueprint",
    description="Queue a failed blueprint for generation again.",
)
async def retry_blueprint(
    blueprint_id: UUID,
    user: CurrentUserDep,
    service: BlueprintServiceDep,
    processor: ProcessorDep,
    background_tasks: BackgroundTasks,
) -> BlueprintSubmitResponse:
    """Retry a failed blueprint."""
    try:
        blueprint, job = await service.retry(user, blueprint_id, process_now=True)
    except BlueprintNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blueprint not found")
    except BlueprintConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except BlueprintNotRetriableError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    background_tasks.add_task(run_first_attempt, processor, job)
    return _submitted(blueprint, job, "Blueprint retry queued")
