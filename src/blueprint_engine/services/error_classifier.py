"""Retry classification for failed generation attempts."""

import errno

import httpx

from blueprint_engine.domain.enums import ErrorClassification

RETRIABLE_STATUS_CODES = frozenset({429, 500, 502, 503})
NON_RETRIABLE_STATUS_CODES = frozenset({400, 401, 403, 404})
RETRIABLE_ERROR_CODES = frozenset({"ETIMEDOUT", "ECONNRESET"})


def get_status_code(error: BaseException) -> int | None:
    """Numeric status carried by an error, if any."""
    for attr in ("status", "status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value

    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code

    return None


def get_error_code(error: BaseException) -> str | None:
    """Symbolic error code (``ETIMEDOUT``, ``RESOURCE_EXHAUSTED``...), if any."""
    code = getattr(error, "code", None)
    if isinstance(code, str):
        return code

    if isinstance(error, OSError) and error.errno is not None:
        return errno.errorcode.get(error.errno)

    return None


def is_timeout_error(error: BaseException) -> bool:
    if isinstance(error, (TimeoutError, httpx.TimeoutException)):
        return True

    if "timeout" in str(error).lower():
        return True

    return get_error_code(error) in RETRIABLE_ERROR_CODES


def classify_error(error: BaseException) -> ErrorClassification:
    """Label an error RETRIABLE or NON_RETRIABLE.

    Known status codes decide first. Without one, timeouts and connection
    resets are retriable. Anything unrecognized is not, so permanent bugs
    are not hidden behind retries.
    """
    status = get_status_code(error)

    if status is not None:
        if status in NON_RETRIABLE_STATUS_CODES:
            return ErrorClassification.NON_RETRIABLE
        if status in RETRIABLE_STATUS_CODES:
            return ErrorClassification.RETRIABLE

    if is_timeout_error(error):
        return ErrorClassification.RETRIABLE

    return ErrorClassification.NON_RETRIABLE


def is_retriable(error: BaseException) -> bool:
    return classify_error(error) is ErrorClassification.RETRIABLE
