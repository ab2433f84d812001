"""Application services."""

from blueprint_engine.services.blueprint_parser import BlueprintParseError, parse_blueprint_response
from blueprint_engine.services.blueprints import (
    BlueprintConflictError,
    BlueprintNotRetriableError,
    BlueprintService,
    BlueprintValidationError,
)
from blueprint_engine.services.error_classifier import classify_error, is_retriable
from blueprint_engine.services.retry_processor import ProcessResult, RetryProcessor
from blueprint_engine.services.retry_worker import RetryWorker

__all__ = [
    "BlueprintConflictError",
    "BlueprintNotRetriableError",
    "BlueprintParseError",
    "BlueprintService",
    "BlueprintValidationError",
    "ProcessResult",
    "RetryProcessor",
    "RetryWorker",
    "classify_error",
    "is_retriable",
    "parse_blueprint_response",
]
