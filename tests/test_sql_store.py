"""Tests for the SQLAlchemy repository (SQLite in memory)."""

from datetime import UTC, datetime, timedelta

import pytest

from blueprint_engine.domain.blueprint import BlueprintPayload, DailyHabit, Overview
from blueprint_engine.domain.enums import BlueprintStatus, ContentType
from blueprint_engine.domain.models import RetryRequestData

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


async def create(repository, user_id: str = "user-123"):
    return await repository.create_blueprint(
        user_id=user_id,
        goal="Exercise three times a week",
        content_source="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        content_type=ContentType.YOUTUBE,
        title="Workout plan",
        source_payload={"content": "transcript", "source_url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ"},
    )


@pytest.mark.asyncio
async def test_create_and_get_blueprint(sql_repository) -> None:
    created = await create(sql_repository)

    fetched = await sql_repository.get_blueprint(created.id)

    assert fetched is not None
    assert fetched.status is BlueprintStatus.PENDING
    assert fetched.content_type is ContentType.YOUTUBE
    assert fetched.ai_output is None
    assert fetched.title == "Workout plan"
    assert fetched.source_payload["content"] == "transcript"
    assert fetched.created_at is not None
    assert fetched.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_store_result_round_trips_payload(sql_repository) -> None:
    created = await create(sql_repository)
    payload = BlueprintPayload(
        overview=Overview(summary="Move daily", mistakes=["Overtraining"]),
        daily_habits=[DailyHabit(id=1, title="Walk", description="20 minutes", timeframe="Week 1")],
    )

    await sql_repository.store_blueprint_result(created.id, payload)
    fetched = await sql_repository.get_blueprint(created.id)

    assert fetched.status is BlueprintStatus.COMPLETED
    assert fetched.ai_output.to_dict() == payload.to_dict()


@pytest.mark.asyncio
async def test_fetch_due_jobs_orders_and_limits(sql_repository) -> None:
    blueprint = await create(sql_repository)
    request = RetryRequestData(prompt="p", metadata={"goal": "g"})

    late = await sql_repository.enqueue_job(blueprint.id, request, NOW - timedelta(seconds=5))
    early = await sql_repository.enqueue_job(blueprint.id, request, NOW - timedelta(seconds=50))
    await sql_repository.enqueue_job(blueprint.id, request, NOW + timedelta(seconds=50))

    due = await sql_repository.fetch_due_jobs(NOW, limit=10)
    assert [job.id for job in due] == [early.id, late.id]
    assert due[0].request_data.metadata == {"goal": "g"}
    assert due[0].retry_count == 0

    limited = await sql_repository.fetch_due_jobs(NOW, limit=1)
    assert [job.id for job in limited] == [early.id]


@pytest.mark.asyncio
async def test_update_job(sql_repository) -> None:
    blueprint = await create(sql_repository)
    job = await sql_repository.enqueue_job(blueprint.id, RetryRequestData(prompt="p"), NOW)

    await sql_repository.update_job(
        job.id,
        retry_count=2,
        next_retry_at=NOW + timedelta(seconds=90),
        last_error="AI service temporarily unavailable",
        error_type="503",
    )
    updated = await sql_repository.get_job(job.id)

    assert updated.retry_count == 2
    assert updated.next_retry_at == NOW + timedelta(seconds=90)
    assert updated.last_error == "AI service temporarily unavailable"
    assert updated.error_type == "503"


@pytest.mark.asyncio
async def test_complete_job_updates_blueprint_and_deletes_job(sql_repository) -> None:
    blueprint = await create(sql_repository)
    job = await sql_repository.enqueue_job(blueprint.id, RetryRequestData(prompt="p"), NOW)

    await sql_repository.complete_job(job, BlueprintPayload(overview=Overview(summary="Done")))

    assert await sql_repository.get_job(job.id) is None
    fetched = await sql_repository.get_blueprint(blueprint.id)
    assert fetched.status is BlueprintStatus.COMPLETED
    assert fetched.ai_output.overview.summary == "Done"


@pytest.mark.asyncio
async def test_fail_job_marks_blueprint_failed(sql_repository) -> None:
    blueprint = await create(sql_repository)
    job = await sql_repository.enqueue_job(blueprint.id, RetryRequestData(prompt="p"), NOW)

    await sql_repository.fail_job(job)

    assert await sql_repository.get_job(job.id) is None
    fetched = await sql_repository.get_blueprint(blueprint.id)
    assert fetched.status is BlueprintStatus.FAILED
    assert fetched.ai_output is None


@pytest.mark.asyncio
async def test_reset_and_delete_jobs_for_blueprint(sql_repository) -> None:
    blueprint = await create(sql_repository)
    await sql_repository.enqueue_job(blueprint.id, RetryRequestData(prompt="p"), NOW)
    await sql_repository.enqueue_job(blueprint.id, RetryRequestData(prompt="p"), NOW)
    await sql_repository.mark_blueprint_failed(blueprint.id)

    await sql_repository.delete_jobs_for_blueprint(blueprint.id)
    await sql_repository.reset_blueprint(blueprint.id)

    assert await sql_repository.fetch_due_jobs(NOW, limit=10) == []
    assert (await sql_repository.get_blueprint(blueprint.id)).status is BlueprintStatus.PENDING


@pytest.mark.asyncio
async def test_list_blueprints_only_returns_owned(sql_repository) -> None:
    mine = await create(sql_repository, user_id="alice")
    await create(sql_repository, user_id="bob")

    listed = await sql_repository.list_blueprints("alice")

    assert [b.id for b in listed] == [mine.id]


@pytest.mark.asyncio
async def test_health_check(sql_repository) -> None:
    assert await sql_repository.health_check() is True
