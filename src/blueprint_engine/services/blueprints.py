"""Blueprint request creation and user-triggered retry.

Creating a blueprint stores a ``pending`` record and enqueues a retry job
holding the full prompt. The job is then picked up either by an immediate
attempt scheduled by the caller or by the retry worker once it is due.
"""

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from blueprint_engine.adapters.store.base import BlueprintNotFoundError, BlueprintRepository
from blueprint_engine.config import settings
from blueprint_engine.domain.enums import BlueprintStatus, ContentType
from blueprint_engine.domain.models import Blueprint, RetryJob, RetryRequestData, UserContext
from blueprint_engine.logging import get_logger
from blueprint_engine.services.prompts import build_blueprint_prompt
from blueprint_engine.services.retry_processor import utc_now
from blueprint_engine.utils.youtube import normalize_youtube_url

logger = get_logger(__name__)

GOAL_MIN_LENGTH = 10
GOAL_MAX_LENGTH = 500
TEXT_MIN_LENGTH = 50
TEXT_MAX_LENGTH = 50_000
TEXT_CONTENT_SOURCE = "Text Input"


class BlueprintValidationError(ValueError):
    """Raised when a blueprint request has invalid input."""

    pass


class BlueprintConflictError(Exception):
    """Raised when a blueprint is already being generated."""

    pass


class BlueprintNotRetriableError(Exception):
    """Raised when a blueprint is not in a state that can be retried."""

    pass


def validate_goal(goal: str) -> str:
    goal = (goal or "").strip()
    if not GOAL_MIN_LENGTH <= len(goal) <= GOAL_MAX_LENGTH:
        raise BlueprintValidationError(
            f"Goal must be between {GOAL_MIN_LENGTH} and {GOAL_MAX_LENGTH} characters"
        )
    return goal


def resolve_source(
    content_type: ContentType,
    content: str,
    source_url: str | None = None,
) -> tuple[str, dict[str, Any]]:
    """Validate the submitted content and work out where it came from.

    Returns:
        ``(content_source, source_payload)``; the payload is what a later
        retry needs to rebuild the prompt

    Raises:
        BlueprintValidationError: If the URL or content is not acceptable
    """
    content = (content or "").strip()

    if content_type is ContentType.YOUTUBE:
        normalized = normalize_youtube_url(source_url or "")
        if normalized is None:
            raise BlueprintValidationError("A valid YouTube video URL is required")
        if not content:
            raise BlueprintValidationError("Video transcript content is required")
        return normalized, {"content": content, "source_url": normalized}

    if not TEXT_MIN_LENGTH <= len(content) <= TEXT_MAX_LENGTH:
        raise BlueprintValidationError(
            f"Text content must be between {TEXT_MIN_LENGTH} and {TEXT_MAX_LENGTH} characters"
        )
    return TEXT_CONTENT_SOURCE, {"content": content, "source_url": None}


class BlueprintService:
    """Creates blueprint requests and re-queues failed ones."""

    def __init__(
        self,
        repository: BlueprintRepository,
        clock: Callable[[], datetime] = utc_now,
        immediate_grace_seconds: float | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            repository: Where blueprints and jobs are persisted
            clock: Returns the current (timezone-aware) time
            immediate_grace_seconds: How long the worker leaves a job alone
                while the caller runs the first attempt itself
        """
        self.repository = repository
        self.clock = clock
        self.immediate_grace_seconds = (
            immediate_grace_seconds
            if immediate_grace_seconds is not None
            else settings.gemini_timeout_seconds
        )

    async def create(
        self,
        user: UserContext,
        goal: str,
        content_type: ContentType,
        content: str,
        source_url: str | None = None,
        title: str | None = None,
        process_now: bool = False,
    ) -> tuple[Blueprint, RetryJob]:
        """Store a pending blueprint and enqueue its first generation job.

        Raises:
            BlueprintValidationError: If the goal or content is invalid
        """
        goal = validate_goal(goal)
        content_source, source_payload = resolve_source(content_type, content, source_url)

        blueprint = await self.repository.create_blueprint(
            user_id=user.user_id,
            goal=goal,
            content_source=content_source,
            content_type=content_type,
            title=title,
            source_payload=source_payload,
        )
        logger.info(
            "blueprint_created",
            blueprint_id=str(blueprint.id),
            user_id=user.user_id,
            content_type=content_type.value,
        )

        metadata = {
            "user_id": user.user_id,
            "goal": goal,
            "content_type": content_type.value,
            "source_url": source_payload["source_url"],
        }
        job = await self._enqueue(blueprint, source_payload["content"], metadata, process_now)
        return blueprint, job

    async def retry(
        self,
        user: UserContext,
        blueprint_id: UUID,
        process_now: bool = False,
    ) -> tuple[Blueprint, RetryJob]:
        """Put a failed blueprint back in the queue.

        Raises:
            BlueprintNotFoundError: If the blueprint is missing or not owned by ``user``
            BlueprintConflictError: If the blueprint is still pending
            BlueprintNotRetriableError: If the blueprint has not failed
        """
        blueprint = await self.get(user, blueprint_id)

        if blueprint.status is BlueprintStatus.PENDING:
            raise BlueprintConflictError("Blueprint is already being generated")
        if blueprint.status is not BlueprintStatus.FAILED:
            raise BlueprintNotRetriableError("Only failed blueprints can be retried")

        source_payload = blueprint.source_payload or {}
        content = source_payload.get("content")
        if not content:
            raise BlueprintNotRetriableError("Blueprint has no stored source content")

        await self.repository.delete_jobs_for_blueprint(blueprint.id)
        await self.repository.reset_blueprint(blueprint.id)
        blueprint = replace(blueprint, status=BlueprintStatus.PENDING, ai_output=None)

        logger.info("blueprint_retry_requested", blueprint_id=str(blueprint.id), user_id=user.user_id)

        metadata = {
            "user_id": user.user_id,
            "goal": blueprint.goal,
            "content_type": blueprint.content_type.value,
            "source_url": source_payload.get("source_url"),
            "retry_of": str(blueprint.id),
        }
        job = await self._enqueue(blueprint, content, metadata, process_now)
        return blueprint, job

    async def get(self, user: UserContext, blueprint_id: UUID) -> Blueprint:
        """Fetch a blueprint owned by ``user``.

        Someone else's blueprint is reported as missing.
        """
        blueprint = await self.repository.get_blueprint(blueprint_id)
        if blueprint is None or blueprint.user_id != user.user_id:
            raise BlueprintNotFoundError(f"Blueprint not found: {blueprint_id}")
        return blueprint

    async def list_for_user(self, user: UserContext, limit: int = 50) -> list[Blueprint]:
        return await self.repository.list_blueprints(user.user_id, limit=limit)

    async def _enqueue(
        self,
        blueprint: Blueprint,
        content: str,
        metadata: dict[str, Any],
        process_now: bool,
    ) -> RetryJob:
        request_data = RetryRequestData(
            prompt=build_blueprint_prompt(blueprint.goal, content),
            metadata=metadata,
        )
        next_retry_at = self.clock()
        if process_now:
            next_retry_at += timedelta(seconds=self.immediate_grace_seconds)

        try:
            job = await self.repository.enqueue_job(blueprint.id, request_data, next_retry_at)
        except Exception as e:
            logger.error(
                "blueprint_enqueue_failed",
                blueprint_id=str(blueprint.id),
                error=str(e),
                exc_info=True,
            )
            await self.repository.mark_blueprint_failed(blueprint.id)
            raise

        logger.info(
            "blueprint_job_enqueued",
            blueprint_id=str(blueprint.id),
            job_id=str(job.id),
            next_retry_at=next_retry_at.isoformat(),
        )
        return job
