"""Tests for domain models."""

from datetime import UTC, datetime
from uuid import uuid4

from blueprint_engine.domain.blueprint import BlueprintPayload, DailyHabit, SequentialStep
from blueprint_engine.domain.enums import BlueprintStatus, ContentType
from blueprint_engine.domain.models import Blueprint, RetryRequestData


def test_payload_from_dict_is_lenient() -> None:
    payload = BlueprintPayload.from_dict(
        {
            "overview": {"summary": "Plan", "mistakes": ["a", None, 3]},
            "sequential_steps": [
                {"title": "Start", "description": "Begin", "deliverable": "Notes"},
                {"step_number": 5, "title": "Finish", "estimated_time": "1 week"},
            ],
            "daily_habits": [],
        }
    )

    assert payload.overview.mistakes == ["a", "3"]
    assert payload.overview.guidance == []
    assert payload.sequential_steps == [
        SequentialStep(step_number=1, title="Start", description="Begin", deliverable="Notes"),
        SequentialStep(
            step_number=5, title="Finish", description="", deliverable="", estimated_time="1 week"
        ),
    ]
    assert payload.daily_habits is None


def test_payload_to_dict_drops_absent_optionals() -> None:
    payload = BlueprintPayload.from_dict(
        {
            "overview": {"summary": "Plan"},
            "decision_checklist": [{"question": "Is it worth it?"}],
        }
    )

    assert payload.to_dict() == {
        "overview": {"summary": "Plan", "mistakes": [], "guidance": []},
        "decision_checklist": [{"question": "Is it worth it?"}],
    }


def test_daily_habit_defaults_from_position() -> None:
    habit = DailyHabit.from_dict({}, 1)
    assert habit == DailyHabit(id=2, title="Step 2", description="", timeframe="")


def test_blueprint_to_dict() -> None:
    blueprint = Blueprint(
        id=uuid4(),
        user_id="user-123",
        goal="Sleep earlier",
        content_source="Text Input",
        content_type=ContentType.TEXT,
        status=BlueprintStatus.PENDING,
        created_at=datetime(2026, 1, 1, tzinfo=UTC),
    )

    data = blueprint.to_dict()

    assert data["status"] == "pending"
    assert data["content_type"] == "text"
    assert data["ai_output"] is None
    assert data["created_at"] == "2026-01-01T00:00:00+00:00"


def test_request_data_from_dict_defaults() -> None:
    data = RetryRequestData.from_dict({"prompt": "p"})
    assert data.metadata == {}
    assert data.to_dict() == {"prompt": "p", "metadata": {}}
