"""Domain enumerations."""

from enum import StrEnum


class BlueprintStatus(StrEnum):
    """Lifecycle status of a blueprint record."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class ContentType(StrEnum):
    """Where the blueprint's source content came from."""

    YOUTUBE = "youtube"
    TEXT = "text"


class ErrorClassification(StrEnum):
    """Whether a failed generation attempt is worth retrying."""

    RETRIABLE = "RETRIABLE"
    NON_RETRIABLE = "NON_RETRIABLE"


class ProcessStatus(StrEnum):
    """Outcome of processing a single retry job."""

    SUCCESS = "success"
    RETRY_SCHEDULED = "retry_scheduled"
    FAILED = "failed"


class FailureReason(StrEnum):
    """Why a retry job ended in failure."""

    MAX_RETRIES = "max_retries"
    NON_RETRIABLE = "non_retriable"
