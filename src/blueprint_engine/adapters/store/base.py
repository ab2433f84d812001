"""Base interface for blueprint and retry job persistence."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any
from uuid import UUID

from blueprint_engine.domain.blueprint import BlueprintPayload
from blueprint_engine.domain.enums import ContentType
from blueprint_engine.domain.models import Blueprint, RetryJob, RetryRequestData


class BlueprintNotFoundError(LookupError):
    """No blueprint (or retry job) exists with the given id."""


class BlueprintRepository(ABC):
    """Durable storage for blueprint records and their retry jobs.

    Implementations:
    - SqlAlchemyBlueprintRepository: PostgreSQL/SQLite via SQLAlchemy
    - InMemoryBlueprintRepository: Process-local dicts for testing

    The job side is a queue keyed by ``next_retry_at``; there is no claim or
    lease, so only one worker should poll a given store.
    """

    # Blueprint records

    @abstractmethod
    async def create_blueprint(
        self,
        user_id: str,
        goal: str,
        content_source: str,
        content_type: ContentType,
        title: str | None = None,
        source_payload: dict[str, Any] | None = None,
    ) -> Blueprint:
        """Insert a new ``pending`` blueprint with no output."""
        ...

    @abstractmethod
    async def get_blueprint(self, blueprint_id: UUID) -> Blueprint | None:
        ...

    @abstractmethod
    async def list_blueprints(self, user_id: str, limit: int = 50) -> list[Blueprint]:
        """A user's blueprints, newest first."""
        ...

    @abstractmethod
    async def store_blueprint_result(self, blueprint_id: UUID, payload: BlueprintPayload) -> None:
        """Mark a blueprint ``completed`` with its payload."""
        ...

    @abstractmethod
    async def mark_blueprint_failed(self, blueprint_id: UUID) -> None:
        """Mark a blueprint ``failed``; its output stays null."""
        ...

    @abstractmethod
    async def reset_blueprint(self, blueprint_id: UUID) -> None:
        """Put a blueprint back to ``pending`` with null output."""
        ...

    # Retry jobs

    @abstractmethod
    async def enqueue_job(
        self,
        blueprint_id: UUID,
        request_data: RetryRequestData,
        next_retry_at: datetime,
    ) -> RetryJob:
        """Insert a retry job with ``retry_count=0``."""
        ...

    @abstractmethod
    async def get_job(self, job_id: UUID) -> RetryJob | None:
        ...

    @abstractmethod
    async def update_job(
        self,
        job_id: UUID,
        *,
        retry_count: int,
        next_retry_at: datetime,
        last_error: str | None,
        error_type: str | None,
    ) -> None:
        """Record a retriable failure on a job."""
        ...

    @abstractmethod
    async def delete_job(self, job_id: UUID) -> None:
        ...

    @abstractmethod
    async def delete_jobs_for_blueprint(self, blueprint_id: UUID) -> None:
        ...

    @abstractmethod
    async def fetch_due_jobs(self, now: datetime, limit: int) -> list[RetryJob]:
        """Jobs with ``next_retry_at <= now``, oldest-due first."""
        ...

    # Terminal outcomes

    async def complete_job(self, job: RetryJob, payload: BlueprintPayload) -> None:
        """Store the payload on the job's blueprint and delete the job.

        Implementations backed by a transactional store override this to do
        both in one transaction.
        """
        await self.store_blueprint_result(job.blueprint_id, payload)
        await self.delete_job(job.id)

    async def fail_job(self, job: RetryJob) -> None:
        """Mark the job's blueprint failed and delete the job."""
        await self.mark_blueprint_failed(job.blueprint_id)
        await self.delete_job(job.id)

    async def health_check(self) -> bool:
        return True
