"""Tests for blueprint creation and user-triggered retry."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from blueprint_engine.adapters.store.base import BlueprintNotFoundError
from blueprint_engine.domain.blueprint import BlueprintPayload, Overview
from blueprint_engine.domain.enums import BlueprintStatus, ContentType
from blueprint_engine.domain.models import UserContext
from blueprint_engine.services.blueprints import (
    TEXT_CONTENT_SOURCE,
    BlueprintConflictError,
    BlueprintNotRetriableError,
    BlueprintService,
    BlueprintValidationError,
)

TEXT = "Habits are the compound interest of self-improvement. " * 3
TRANSCRIPT = "In this video we talk about building a reading habit."


@pytest.fixture
def service(repository, clock) -> BlueprintService:
    return BlueprintService(repository, clock=clock, immediate_grace_seconds=120)


@pytest.mark.asyncio
async def test_create_text_blueprint(service, repository, user, clock) -> None:
    blueprint, job = await service.create(
        user, goal="Read twenty pages a day", content_type=ContentType.TEXT, content=TEXT
    )

    assert blueprint.status is BlueprintStatus.PENDING
    assert blueprint.content_source == TEXT_CONTENT_SOURCE
    assert blueprint.user_id == "user-123"

    assert job.retry_count == 0
    assert job.next_retry_at == clock()
    assert "Read twenty pages a day" in job.request_data.prompt
    assert TEXT.strip() in job.request_data.prompt
    assert job.request_data.metadata == {
        "user_id": "user-123",
        "goal": "Read twenty pages a day",
        "content_type": "text",
        "source_url": None,
    }
    assert await repository.get_job(job.id) is not None


@pytest.mark.asyncio
async def test_create_youtube_blueprint_normalizes_url(service, user) -> None:
    blueprint, job = await service.create(
        user,
        goal="Read twenty pages a day",
        content_type=ContentType.YOUTUBE,
        content=TRANSCRIPT,
        source_url="https://youtu.be/dQw4w9WgXcQ?t=42",
    )

    assert blueprint.content_source == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    assert job.request_data.metadata["source_url"] == blueprint.content_source


@pytest.mark.asyncio
async def test_process_now_delays_worker_pickup(service, user, clock) -> None:
    _, job = await service.create(
        user,
        goal="Read twenty pages a day",
        content_type=ContentType.TEXT,
        content=TEXT,
        process_now=True,
    )

    assert job.next_retry_at == clock() + timedelta(seconds=120)


@pytest.mark.parametrize(
    "goal, content_type, content, source_url",
    [
        ("short", ContentType.TEXT, TEXT, None),
        ("x" * 501, ContentType.TEXT, TEXT, None),
        ("Read twenty pages a day", ContentType.TEXT, "too short", None),
        ("Read twenty pages a day", ContentType.TEXT, "x" * 50_001, None),
        ("Read twenty pages a day", ContentType.YOUTUBE, TRANSCRIPT, "https://evil.com/watch?v=dQw4w9WgXcQ"),
        ("Read twenty pages a day", ContentType.YOUTUBE, TRANSCRIPT, None),
        ("Read twenty pages a day", ContentType.YOUTUBE, "", "https://youtu.be/dQw4w9WgXcQ"),
    ],
)
@pytest.mark.asyncio
async def test_create_rejects_invalid_input(
    service, repository, user, goal, content_type, content, source_url
) -> None:
    with pytest.raises(BlueprintValidationError):
        await service.create(
            user, goal=goal, content_type=content_type, content=content, source_url=source_url
        )

    assert repository.blueprints == {}


@pytest.mark.asyncio
async def test_enqueue_failure_marks_blueprint_failed(repository, user, clock) -> None:
    service = BlueprintService(repository, clock=clock)
    repository.enqueue_job = AsyncMock(side_effect=RuntimeError("insert failed"))

    with pytest.raises(RuntimeError):
        await service.create(
            user, goal="Read twenty pages a day", content_type=ContentType.TEXT, content=TEXT
        )

    [stored] = repository.blueprints.values()
    assert stored.status is BlueprintStatus.FAILED


@pytest.mark.asyncio
async def test_retry_failed_blueprint(service, repository, user) -> None:
    blueprint, job = await service.create(
        user, goal="Read twenty pages a day", content_type=ContentType.TEXT, content=TEXT
    )
    await repository.fail_job(job)

    retried, new_job = await service.retry(user, blueprint.id)

    assert retried.status is BlueprintStatus.PENDING
    assert (await repository.get_blueprint(blueprint.id)).status is BlueprintStatus.PENDING
    assert new_job.id != job.id
    assert new_job.retry_count == 0
    assert new_job.request_data.prompt == job.request_data.prompt
    assert new_job.request_data.metadata["retry_of"] == str(blueprint.id)
    assert list(repository.jobs) == [new_job.id]


@pytest.mark.asyncio
async def test_retry_pending_blueprint_conflicts(service, user) -> None:
    blueprint, _ = await service.create(
        user, goal="Read twenty pages a day", content_type=ContentType.TEXT, content=TEXT
    )

    with pytest.raises(BlueprintConflictError):
        await service.retry(user, blueprint.id)


@pytest.mark.asyncio
async def test_retry_completed_blueprint_is_rejected(service, repository, user) -> None:
    blueprint, job = await service.create(
        user, goal="Read twenty pages a day", content_type=ContentType.TEXT, content=TEXT
    )
    await repository.complete_job(job, BlueprintPayload(overview=Overview(summary="Done")))

    with pytest.raises(BlueprintNotRetriableError):
        await service.retry(user, blueprint.id)


@pytest.mark.asyncio
async def test_other_users_blueprints_are_not_found(service, user) -> None:
    blueprint, _ = await service.create(
        user, goal="Read twenty pages a day", content_type=ContentType.TEXT, content=TEXT
    )
    stranger = UserContext(user_id="someone-else")

    with pytest.raises(BlueprintNotFoundError):
        await service.get(stranger, blueprint.id)
    with pytest.raises(BlueprintNotFoundError):
        await service.retry(stranger, blueprint.id)

    assert await service.list_for_user(stranger) == []
    assert [b.id for b in await service.list_for_user(user)] == [blueprint.id]
