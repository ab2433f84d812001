"""Runs one blueprint generation attempt and decides what happens next.

Each attempt calls the AI provider, parses the response, and ends in one of
three outcomes:

- success: the payload is stored on the blueprint and the job is deleted
- retry scheduled: the job is pushed back by the next delay in the backoff
  schedule (10s, 30s, 90s, 270s by default)
- failed: the error was not retriable, or the schedule is used up; the
  blueprint is marked failed and the job is deleted

Provider and parse errors never escape ``process``; repository errors do.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from blueprint_engine.adapters.ai.base import AIProvider, AiRequestError
from blueprint_engine.adapters.store.base import BlueprintRepository
from blueprint_engine.config import settings
from blueprint_engine.domain.blueprint import BlueprintPayload
from blueprint_engine.domain.enums import ErrorClassification, FailureReason, ProcessStatus
from blueprint_engine.domain.models import RetryJob, RetryRequestData
from blueprint_engine.logging import get_logger, job_log_context
from blueprint_engine.services.blueprint_parser import BlueprintParseError, parse_blueprint_response
from blueprint_engine.services.error_classifier import (
    classify_error,
    get_error_code,
    get_status_code,
)

logger = get_logger(__name__)

DEFAULT_RETRY_DELAYS_SECONDS = (10, 30, 90, 270)
LOG_SNIPPET_LENGTH = 300


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class ProcessResult:
    """Outcome of processing one retry job."""

    status: ProcessStatus
    retry_count: int | None = None
    next_retry_at: datetime | None = None
    reason: FailureReason | None = None
    error_message: str | None = None

    @classmethod
    def success(cls) -> "ProcessResult":
        return cls(status=ProcessStatus.SUCCESS)

    @classmethod
    def retry_scheduled(cls, retry_count: int, next_retry_at: datetime) -> "ProcessResult":
        return cls(
            status=ProcessStatus.RETRY_SCHEDULED,
            retry_count=retry_count,
            next_retry_at=next_retry_at,
        )

    @classmethod
    def failed(cls, reason: FailureReason, error_message: str) -> "ProcessResult":
        return cls(status=ProcessStatus.FAILED, reason=reason, error_message=error_message)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status.value}
        if self.status is ProcessStatus.RETRY_SCHEDULED:
            data["retry_count"] = self.retry_count
            data["next_retry_at"] = self.next_retry_at.isoformat() if self.next_retry_at else None
        elif self.status is ProcessStatus.FAILED:
            data["reason"] = self.reason.value if self.reason else None
            data["error_message"] = self.error_message
        return data


@dataclass
class GenerationResult:
    """Either a parsed payload or the error that prevented one."""

    payload: BlueprintPayload | None = None
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.payload is not None


def parse_error_as_request_error(error: BlueprintParseError) -> AiRequestError:
    """Give parse failures the same shape as provider failures (502, ``PARSE_ERROR``)."""
    return AiRequestError(
        "AI response could not be parsed",
        502,
        {
            "type": "PARSE_ERROR",
            "code": "PARSE_ERROR",
            "reason": error.message,
            "raw_snippet": error.raw_snippet,
            "sanitized_snippet": error.sanitized_snippet,
        },
    )


def extract_snippet(error: Exception) -> str | None:
    """Short excerpt of the model output that failed, if the error carries one."""
    snippets: list[Any] = []
    if isinstance(error, AiRequestError) and isinstance(error.details, dict):
        snippets = [error.details.get("raw_snippet"), error.details.get("sanitized_snippet")]
    elif isinstance(error, BlueprintParseError):
        snippets = [error.sanitized_snippet, error.raw_snippet]

    for snippet in snippets:
        if isinstance(snippet, str) and snippet.strip():
            return snippet[:LOG_SNIPPET_LENGTH]
    return None


def extract_provider_meta(error: Exception) -> dict[str, Any]:
    """Pick the upstream status/reason/message out of a Gemini error body."""
    if not isinstance(error, AiRequestError) or not isinstance(error.details, dict):
        return {}
    body = error.details.get("error")
    if not isinstance(body, dict):
        return {}
    meta = {
        "provider_status": body.get("status"),
        "provider_code": body.get("code"),
        "provider_message": body.get("message"),
    }
    return {key: value for key, value in meta.items() if value is not None}


class RetryProcessor:
    """Processes retry jobs against an AI provider and a repository."""

    def __init__(
        self,
        repository: BlueprintRepository,
        ai_provider: AIProvider,
        retry_delays_seconds: Sequence[int] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the processor.

        Args:
            repository: Where blueprints and jobs are persisted
            ai_provider: Provider used for generation
            retry_delays_seconds: Backoff schedule; its length is the retry budget
            clock: Returns the current (timezone-aware) time
        """
        self.repository = repository
        self.ai = ai_provider
        self.retry_delays_seconds = tuple(
            retry_delays_seconds
            if retry_delays_seconds is not None
            else settings.retry_delays_seconds or DEFAULT_RETRY_DELAYS_SECONDS
        )
        self.clock = clock

    @property
    def max_retries(self) -> int:
        return len(self.retry_delays_seconds)

    async def generate(self, request_data: RetryRequestData) -> GenerationResult:
        """Call the provider and parse its output without raising."""
        if not request_data.prompt.strip():
            return GenerationResult(error=AiRequestError("Retry job has no prompt", 400))

        try:
            ai_text = await self.ai.generate(request_data.prompt)
        except Exception as e:
            return GenerationResult(error=e)

        try:
            return GenerationResult(payload=parse_blueprint_response(ai_text))
        except BlueprintParseError as e:
            return GenerationResult(error=parse_error_as_request_error(e))
        except Exception as e:
            return GenerationResult(error=e)

    async def process(self, job: RetryJob) -> ProcessResult:
        """Run one attempt for ``job`` and persist the outcome."""
        with job_log_context(job_id=job.id, blueprint_id=job.blueprint_id):
            logger.info(
                "blueprint_job_processing",
                provider=self.ai.name,
                retry_count=job.retry_count,
            )

            result = await self.generate(job.request_data)

            if result.payload is not None:
                await self.repository.complete_job(job, result.payload)
                logger.info("blueprint_job_completed", sections=result.payload.sections())
                return ProcessResult.success()

            error = result.error or AiRequestError("AI failed to generate blueprint", 500)
            return await self._handle_error(job, error)

    async def _handle_error(self, job: RetryJob, error: Exception) -> ProcessResult:
        classification = classify_error(error)
        message = str(error) or type(error).__name__
        status_code = get_status_code(error)
        error_code = get_error_code(error)
        snippet = extract_snippet(error)
        meta = extract_provider_meta(error)

        logger.warning(
            "blueprint_job_error",
            retry_count=job.retry_count,
            error=message,
            error_type=type(error).__name__,
            status_code=status_code,
            error_code=error_code,
            classification=classification.value,
            snippet=snippet,
            **meta,
        )

        if classification is ErrorClassification.RETRIABLE:
            new_retry_count = job.retry_count + 1

            if new_retry_count > self.max_retries:
                await self._fail(job, message, snippet, meta)
                return ProcessResult.failed(FailureReason.MAX_RETRIES, message)

            delay_seconds = self.retry_delays_seconds[new_retry_count - 1]
            next_retry_at = self.clock() + timedelta(seconds=delay_seconds)

            await self.repository.update_job(
                job.id,
                retry_count=new_retry_count,
                next_retry_at=next_retry_at,
                last_error=f"{message} | snippet={snippet}" if snippet else message,
                error_type=error_code or (str(status_code) if status_code is not None else "unknown"),
            )

            logger.info(
                "blueprint_retry_scheduled",
                next_retry_count=new_retry_count,
                delay_seconds=delay_seconds,
                next_retry_at=next_retry_at.isoformat(),
            )
            return ProcessResult.retry_scheduled(new_retry_count, next_retry_at)

        await self._fail(job, message, snippet, meta)
        return ProcessResult.failed(FailureReason.NON_RETRIABLE, message)

    async def _fail(
        self,
        job: RetryJob,
        message: str,
        snippet: str | None,
        meta: dict[str, Any],
    ) -> None:
        await self.repository.fail_job(job)
        logger.error(
            "blueprint_job_failed",
            retries=job.retry_count,
            error=message,
            snippet=snippet,
            **meta,
        )
