"""Typed blueprint payload produced from the AI response.

A payload always carries an ``overview``; the five other sections are
optional and are ``None`` when the model did not produce them (or produced
an empty list). Section items are built leniently from whatever the model
returned: missing string fields become ``""``, numbers sent as strings or
floats are converted, and non-object entries are dropped.
"""

from dataclasses import dataclass, field
from typing import Any


def _str(data: dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, str) else str(item) for item in value if item is not None]


def _int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        pass
    # "5.0"
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass
class Overview:
    """Summary of the content plus pitfalls and guidance."""

    summary: str
    mistakes: list[str] = field(default_factory=list)
    guidance: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "mistakes": list(self.mistakes),
            "guidance": list(self.guidance),
        }


@dataclass
class SequentialStep:
    step_number: int
    title: str
    description: str
    deliverable: str
    estimated_time: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int) -> "SequentialStep":
        return cls(
            step_number=_int(data.get("step_number"), index + 1),
            title=_str(data, "title"),
            description=_str(data, "description"),
            deliverable=_str(data, "deliverable"),
            estimated_time=_optional_str(data, "estimated_time"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "step_number": self.step_number,
                "title": self.title,
                "description": self.description,
                "deliverable": self.deliverable,
                "estimated_time": self.estimated_time,
            }
        )


@dataclass
class DailyHabit:
    id: int | str
    title: str
    description: str
    timeframe: str

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int) -> "DailyHabit":
        """Build a habit, defaulting missing fields from its position."""
        habit_id = data.get("id")
        if habit_id is None or isinstance(habit_id, float):
            habit_id = _int(habit_id, index + 1)
        return cls(
            id=habit_id,
            title=_str(data, "title", f"Step {index + 1}"),
            description=_str(data, "description"),
            timeframe=_str(data, "timeframe"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "timeframe": self.timeframe,
        }


@dataclass
class TriggerAction:
    situation: str
    immediate_action: str
    timeframe: str

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int) -> "TriggerAction":  # noqa: ARG003
        return cls(
            situation=_str(data, "situation"),
            immediate_action=_str(data, "immediate_action"),
            timeframe=_str(data, "timeframe"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "situation": self.situation,
            "immediate_action": self.immediate_action,
            "timeframe": self.timeframe,
        }


@dataclass
class DecisionQuestion:
    question: str
    weight: str | None = None  # "Critical", "Important", "Consider"

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int) -> "DecisionQuestion":  # noqa: ARG003
        return cls(question=_str(data, "question"), weight=_optional_str(data, "weight"))

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({"question": self.question, "weight": self.weight})


@dataclass
class Resource:
    name: str
    type: str  # "tool", "book", "article", "course"
    description: str

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int) -> "Resource":  # noqa: ARG003
        return cls(
            name=_str(data, "name"),
            type=_str(data, "type"),
            description=_str(data, "description"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type, "description": self.description}


# Optional array sections, in output order, with their item types
SECTION_TYPES: dict[str, Any] = {
    "sequential_steps": SequentialStep,
    "daily_habits": DailyHabit,
    "trigger_actions": TriggerAction,
    "decision_checklist": DecisionQuestion,
    "resources": Resource,
}


@dataclass
class BlueprintPayload:
    """The parsed structured plan attached to a completed blueprint."""

    overview: Overview
    sequential_steps: list[SequentialStep] | None = None
    daily_habits: list[DailyHabit] | None = None
    trigger_actions: list[TriggerAction] | None = None
    decision_checklist: list[DecisionQuestion] | None = None
    resources: list[Resource] | None = None

    def sections(self) -> list[str]:
        """Names of the optional sections present in this payload."""
        return [name for name in SECTION_TYPES if getattr(self, name) is not None]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"overview": self.overview.to_dict()}
        for name in self.sections():
            data[name] = [item.to_dict() for item in getattr(self, name)]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BlueprintPayload":
        """Rebuild a payload that was previously stored with ``to_dict``."""
        overview = data.get("overview") or {}
        payload = cls(
            overview=Overview(
                summary=_str(overview, "summary"),
                mistakes=_str_list(overview.get("mistakes")),
                guidance=_str_list(overview.get("guidance")),
            )
        )
        for name, item_type in SECTION_TYPES.items():
            items = build_section(item_type, data.get(name))
            if items:
                setattr(payload, name, items)
        return payload


def build_section(item_type: Any, raw_items: Any) -> list[Any]:
    """Build typed section items from a raw JSON array, skipping non-objects."""
    if not isinstance(raw_items, list):
        return []
    return [
        item_type.from_dict(item, index)
        for index, item in enumerate(raw_items)
        if isinstance(item, dict)
    ]


def build_legacy_habits(raw_items: Any) -> list[DailyHabit]:
    """Map an old flat ``habits`` array onto daily habits, one per entry.

    Entries that are not objects still take a slot and get positional defaults.
    """
    if not isinstance(raw_items, list):
        return []
    return [
        DailyHabit.from_dict(item if isinstance(item, dict) else {}, index)
        for index, item in enumerate(raw_items)
        if item is not None
    ]
