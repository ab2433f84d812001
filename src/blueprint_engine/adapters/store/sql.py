"""SQLAlchemy-backed repository."""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from functools import partial
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import delete, select, text, update
from sqlalchemy.orm import Session, sessionmaker

from blueprint_engine.adapters.store.base import BlueprintRepository
from blueprint_engine.db.models import BlueprintModel, RetryJobModel
from blueprint_engine.domain.blueprint import BlueprintPayload
from blueprint_engine.domain.enums import BlueprintStatus, ContentType
from blueprint_engine.domain.models import Blueprint, RetryJob, RetryRequestData
from blueprint_engine.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _aware(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything here is stored as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _to_blueprint(row: BlueprintModel) -> Blueprint:
    return Blueprint(
        id=row.id,
        user_id=row.user_id,
        goal=row.goal,
        content_source=row.content_source,
        content_type=ContentType(row.content_type),
        status=BlueprintStatus(row.status),
        ai_output=BlueprintPayload.from_dict(row.ai_output) if row.ai_output else None,
        title=row.title,
        source_payload=row.source_payload,
        created_at=_aware(row.created_at),
    )


def _to_job(row: RetryJobModel) -> RetryJob:
    return RetryJob(
        id=row.id,
        blueprint_id=row.blueprint_id,
        request_data=RetryRequestData.from_dict(row.request_data or {}),
        retry_count=row.retry_count or 0,
        next_retry_at=_aware(row.next_retry_at),  # type: ignore[arg-type]
        error_type=row.error_type,
        last_error=row.last_error,
        created_at=_aware(row.created_at),
    )


class SqlAlchemyBlueprintRepository(BlueprintRepository):
    """Repository over the ``habit_blueprints`` and ``blueprint_retry_jobs`` tables.

    Sessions are synchronous; every call runs in the default executor so the
    event loop driving the retry worker is never blocked on the database.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        if session_factory is None:
            from blueprint_engine.db.session import SessionLocal

            session_factory = SessionLocal
        self.session_factory = session_factory

    async def _run(self, fn: Callable[[Session], T]) -> T:
        """Run ``fn`` in a session that commits on success and rolls back on error."""

        def work() -> T:
            session = self.session_factory()
            try:
                result = fn(session)
                session.commit()
                return result
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, work)

    # Blueprint records

    async def create_blueprint(
        self,
        user_id: str,
        goal: str,
        content_source: str,
        content_type: ContentType,
        title: str | None = None,
        source_payload: dict[str, Any] | None = None,
    ) -> Blueprint:
        def work(session: Session) -> Blueprint:
            row = BlueprintModel(
                user_id=user_id,
                goal=goal,
                content_source=content_source,
                content_type=content_type.value,
                status=BlueprintStatus.PENDING.value,
                ai_output=None,
                title=title,
                source_payload=source_payload,
            )
            session.add(row)
            session.flush()
            session.refresh(row)
            return _to_blueprint(row)

        return await self._run(work)

    async def get_blueprint(self, blueprint_id: UUID) -> Blueprint | None:
        def work(session: Session) -> Blueprint | None:
            row = session.get(BlueprintModel, blueprint_id)
            return _to_blueprint(row) if row else None

        return await self._run(work)

    async def list_blueprints(self, user_id: str, limit: int = 50) -> list[Blueprint]:
        def work(session: Session) -> list[Blueprint]:
            rows = session.scalars(
                select(BlueprintModel)
                .where(BlueprintModel.user_id == user_id)
                .order_by(BlueprintModel.created_at.desc())
                .limit(limit)
            )
            return [_to_blueprint(row) for row in rows]

        return await self._run(work)

    @staticmethod
    def _set_blueprint(session: Session, blueprint_id: UUID, **values: Any) -> None:
        session.execute(
            update(BlueprintModel).where(BlueprintModel.id == blueprint_id).values(**values)
        )

    async def store_blueprint_result(self, blueprint_id: UUID, payload: BlueprintPayload) -> None:
        await self._run(
            partial(
                self._set_blueprint,
                blueprint_id=blueprint_id,
                status=BlueprintStatus.COMPLETED.value,
                ai_output=payload.to_dict(),
            )
        )

    async def mark_blueprint_failed(self, blueprint_id: UUID) -> None:
        await self._run(
            partial(
                self._set_blueprint,
                blueprint_id=blueprint_id,
                status=BlueprintStatus.FAILED.value,
            )
        )

    async def reset_blueprint(self, blueprint_id: UUID) -> None:
        await self._run(
            partial(
                self._set_blueprint,
                blueprint_id=blueprint_id,
                status=BlueprintStatus.PENDING.value,
                ai_output=None,
            )
        )

    # Retry jobs

    async def enqueue_job(
        self,
        blueprint_id: UUID,
        request_data: RetryRequestData,
        next_retry_at: datetime,
    ) -> RetryJob:
        def work(session: Session) -> RetryJob:
            row = RetryJobModel(
                blueprint_id=blueprint_id,
                request_data=request_data.to_dict(),
                retry_count=0,
                next_retry_at=next_retry_at,
            )
            session.add(row)
            session.flush()
            session.refresh(row)
            return _to_job(row)

        return await self._run(work)

    async def get_job(self, job_id: UUID) -> RetryJob | None:
        def work(session: Session) -> RetryJob | None:
            row = session.get(RetryJobModel, job_id)
            return _to_job(row) if row else None

        return await self._run(work)

    async def update_job(
        self,
        job_id: UUID,
        *,
        retry_count: int,
        next_retry_at: datetime,
        last_error: str | None,
        error_type: str | None,
    ) -> None:
        def work(session: Session) -> None:
            session.execute(
                update(RetryJobModel)
                .where(RetryJobModel.id == job_id)
                .values(
                    retry_count=retry_count,
                    next_retry_at=next_retry_at,
                    last_error=last_error,
                    error_type=error_type,
                )
            )

        await self._run(work)

    async def delete_job(self, job_id: UUID) -> None:
        await self._run(
            lambda session: session.execute(delete(RetryJobModel).where(RetryJobModel.id == job_id))
        )

    async def delete_jobs_for_blueprint(self, blueprint_id: UUID) -> None:
        await self._run(
            lambda session: session.execute(
                delete(RetryJobModel).where(RetryJobModel.blueprint_id == blueprint_id)
            )
        )

    async def fetch_due_jobs(self, now: datetime, limit: int) -> list[RetryJob]:
        def work(session: Session) -> list[RetryJob]:
            rows = session.scalars(
                select(RetryJobModel)
                .where(RetryJobModel.next_retry_at <= now)
                .order_by(RetryJobModel.next_retry_at.asc())
                .limit(limit)
            )
            return [_to_job(row) for row in rows]

        return await self._run(work)

    # Terminal outcomes

    async def complete_job(self, job: RetryJob, payload: BlueprintPayload) -> None:
        """Store the result and delete the job in a single transaction."""

        def work(session: Session) -> None:
            self._set_blueprint(
                session,
                job.blueprint_id,
                status=BlueprintStatus.COMPLETED.value,
                ai_output=payload.to_dict(),
            )
            session.execute(delete(RetryJobModel).where(RetryJobModel.id == job.id))

        await self._run(work)

    async def fail_job(self, job: RetryJob) -> None:
        """Mark the blueprint failed and delete the job in a single transaction."""

        def work(session: Session) -> None:
            self._set_blueprint(session, job.blueprint_id, status=BlueprintStatus.FAILED.value)
            session.execute(delete(RetryJobModel).where(RetryJobModel.id == job.id))

        await self._run(work)

    async def health_check(self) -> bool:
        try:
            await self._run(lambda session: session.execute(text("SELECT 1")))
            return True
        except Exception as e:
            logger.error("database_health_check_failed", error=str(e))
            return False
