"""Domain models - pure Python classes independent of database."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from blueprint_engine.domain.blueprint import BlueprintPayload
from blueprint_engine.domain.enums import BlueprintStatus, ContentType


@dataclass(frozen=True)
class UserContext:
    """The authenticated caller, resolved by the auth gateway."""

    user_id: str


@dataclass
class Blueprint:
    """A user-submitted content-to-plan request."""

    id: UUID
    user_id: str
    goal: str
    content_source: str
    content_type: ContentType
    status: BlueprintStatus
    ai_output: BlueprintPayload | None = None
    title: str | None = None
    # Source content kept so a failed blueprint can be retried
    source_payload: dict[str, Any] | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "goal": self.goal,
            "content_source": self.content_source,
            "content_type": self.content_type.value,
            "status": self.status.value,
            "ai_output": self.ai_output.to_dict() if self.ai_output else None,
            "title": self.title,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class RetryRequestData:
    """What a retry job sends to the AI provider."""

    prompt: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"prompt": self.prompt, "metadata": dict(self.metadata)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RetryRequestData":
        return cls(prompt=data.get("prompt", ""), metadata=dict(data.get("metadata") or {}))


@dataclass
class RetryJob:
    """One in-flight attempt to produce a blueprint's output.

    ``error_type`` holds the classification code of the last failure
    (an error code such as ``ETIMEDOUT`` or the HTTP status as a string).
    """

    id: UUID
    blueprint_id: UUID
    request_data: RetryRequestData
    retry_count: int
    next_retry_at: datetime
    error_type: str | None = None
    last_error: str | None = None
    created_at: datetime | None = None
