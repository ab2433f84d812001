"""In-memory repository for testing and local runs."""

from dataclasses import replace
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from blueprint_engine.adapters.store.base import BlueprintRepository
from blueprint_engine.domain.blueprint import BlueprintPayload
from blueprint_engine.domain.enums import BlueprintStatus, ContentType
from blueprint_engine.domain.models import Blueprint, RetryJob, RetryRequestData
from blueprint_engine.logging import get_logger

logger = get_logger(__name__)


class InMemoryBlueprintRepository(BlueprintRepository):
    """Stub repository keeping blueprints and jobs in process-local dicts.

    Returned records are copies, so callers cannot mutate stored state
    without going through the repository.
    """

    def __init__(self) -> None:
        self.blueprints: dict[UUID, Blueprint] = {}
        self.jobs: dict[UUID, RetryJob] = {}

    async def create_blueprint(
        self,
        user_id: str,
        goal: str,
        content_source: str,
        content_type: ContentType,
        title: str | None = None,
        source_payload: dict[str, Any] | None = None,
    ) -> Blueprint:
        blueprint = Blueprint(
            id=uuid4(),
            user_id=user_id,
            goal=goal,
            content_source=content_source,
            content_type=content_type,
            status=BlueprintStatus.PENDING,
            title=title,
            source_payload=dict(source_payload) if source_payload else None,
            created_at=datetime.now(UTC),
        )
        self.blueprints[blueprint.id] = blueprint
        logger.debug("memory_blueprint_created", blueprint_id=str(blueprint.id))
        return replace(blueprint)

    async def get_blueprint(self, blueprint_id: UUID) -> Blueprint | None:
        blueprint = self.blueprints.get(blueprint_id)
        return replace(blueprint) if blueprint else None

    async def list_blueprints(self, user_id: str, limit: int = 50) -> list[Blueprint]:
        owned = [b for b in self.blueprints.values() if b.user_id == user_id]
        owned.sort(key=lambda b: b.created_at or datetime.min.replace(tzinfo=UTC), reverse=True)
        return [replace(b) for b in owned[:limit]]

    async def store_blueprint_result(self, blueprint_id: UUID, payload: BlueprintPayload) -> None:
        if blueprint_id in self.blueprints:
            self.blueprints[blueprint_id] = replace(
                self.blueprints[blueprint_id],
                status=BlueprintStatus.COMPLETED,
                ai_output=BlueprintPayload.from_dict(payload.to_dict()),
            )

    async def mark_blueprint_failed(self, blueprint_id: UUID) -> None:
        if blueprint_id in self.blueprints:
            self.blueprints[blueprint_id] = replace(
                self.blueprints[blueprint_id], status=BlueprintStatus.FAILED
            )

    async def reset_blueprint(self, blueprint_id: UUID) -> None:
        if blueprint_id in self.blueprints:
            self.blueprints[blueprint_id] = replace(
                self.blueprints[blueprint_id], status=BlueprintStatus.PENDING, ai_output=None
            )

    async def enqueue_job(
        self,
        blueprint_id: UUID,
        request_data: RetryRequestData,
        next_retry_at: datetime,
    ) -> RetryJob:
        job = RetryJob(
            id=uuid4(),
            blueprint_id=blueprint_id,
            request_data=RetryRequestData.from_dict(request_data.to_dict()),
            retry_count=0,
            next_retry_at=next_retry_at,
            created_at=datetime.now(UTC),
        )
        self.jobs[job.id] = job
        return replace(job)

    async def get_job(self, job_id: UUID) -> RetryJob | None:
        job = self.jobs.get(job_id)
        return replace(job) if job else None

    async def update_job(
        self,
        job_id: UUID,
        *,
        retry_count: int,
        next_retry_at: datetime,
        last_error: str | None,
        error_type: str | None,
    ) -> None:
        if job_id in self.jobs:
            self.jobs[job_id] = replace(
                self.jobs[job_id],
                retry_count=retry_count,
                next_retry_at=next_retry_at,
                last_error=last_error,
                error_type=error_type,
            )

    async def delete_job(self, job_id: UUID) -> None:
        self.jobs.pop(job_id, None)

    async def delete_jobs_for_blueprint(self, blueprint_id: UUID) -> None:
        for job_id in [j.id for j in self.jobs.values() if j.blueprint_id == blueprint_id]:
            del self.jobs[job_id]

    async def fetch_due_jobs(self, now: datetime, limit: int) -> list[RetryJob]:
        due = sorted(
            (job for job in self.jobs.values() if job.next_retry_at <= now),
            key=lambda job: job.next_retry_at,
        )
        return [replace(job) for job in due[:limit]]
