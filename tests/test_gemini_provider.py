"""Tests for the Gemini provider."""

import json

import httpx
import pytest

from blueprint_engine.adapters.ai.base import AiRequestError
from blueprint_engine.adapters.ai.gemini import (
    GENERATION_CONFIG,
    RATE_LIMIT_MESSAGE,
    UNAVAILABLE_MESSAGE,
    GeminiProvider,
)
from blueprint_engine.services.error_classifier import is_retriable


def make_provider(handler, force_failure: str = "", api_key: str = "test-key") -> GeminiProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiProvider(
        api_key=api_key,
        model="gemini-test",
        base_url="https://gemini.test/v1beta",
        force_failure=force_failure,
        client=client,
    )


def candidate_body(text: str) -> dict:
    return {
        "candidates": [{"content": {"parts": [{"text": text}]}}],
        "usageMetadata": {"totalTokenCount": 42},
    }


@pytest.mark.asyncio
async def test_generate_returns_candidate_text() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=candidate_body('{"overview": {"summary": "ok"}}'))

    provider = make_provider(handler)
    text = await provider.generate("Build me a plan")

    assert text == '{"overview": {"summary": "ok"}}'
    request = seen[0]
    assert request.url == "https://gemini.test/v1beta/models/gemini-test:generateContent"
    assert request.headers["x-goog-api-key"] == "test-key"

    body = json.loads(request.content)
    assert body["contents"][0]["parts"][0]["text"] == "Build me a plan"
    assert body["generationConfig"]["temperature"] == GENERATION_CONFIG["temperature"]
    assert body["generationConfig"]["maxOutputTokens"] == 2048
    assert body["generationConfig"]["responseMimeType"] == "application/json"


@pytest.mark.asyncio
async def test_rate_limit_is_429() -> None:
    error_body = {"error": {"code": 429, "status": "RESOURCE_EXHAUSTED", "message": "Quota"}}

    provider = make_provider(lambda request: httpx.Response(429, json=error_body))

    with pytest.raises(AiRequestError) as exc_info:
        await provider.generate("prompt")

    error = exc_info.value
    assert error.status_code == 429
    assert error.message == RATE_LIMIT_MESSAGE
    assert error.details == error_body
    assert error.code == "RESOURCE_EXHAUSTED"
    assert is_retriable(error)


@pytest.mark.parametrize("upstream_status", [400, 403, 500, 503])
@pytest.mark.asyncio
async def test_other_http_errors_become_503(upstream_status: int) -> None:
    provider = make_provider(lambda request: httpx.Response(upstream_status, text="upstream broke"))

    with pytest.raises(AiRequestError) as exc_info:
        await provider.generate("prompt")

    assert exc_info.value.status_code == 503
    assert exc_info.value.message == UNAVAILABLE_MESSAGE
    assert exc_info.value.details == "upstream broke"


@pytest.mark.asyncio
async def test_missing_candidate_text_is_500() -> None:
    provider = make_provider(lambda request: httpx.Response(200, json={"candidates": []}))

    with pytest.raises(AiRequestError) as exc_info:
        await provider.generate("prompt")

    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "AI failed to generate blueprint"


@pytest.mark.asyncio
async def test_timeout_is_retriable_503() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    provider = make_provider(handler)

    with pytest.raises(AiRequestError) as exc_info:
        await provider.generate("prompt")

    assert exc_info.value.status_code == 503
    assert exc_info.value.code == "ETIMEDOUT"


@pytest.mark.asyncio
async def test_missing_api_key_fails_without_network_call() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=candidate_body("{}"))

    provider = make_provider(handler, api_key="")
    provider.api_key = None

    with pytest.raises(AiRequestError) as exc_info:
        await provider.generate("prompt")

    assert exc_info.value.status_code == 503
    assert calls == []
    assert await provider.health_check() is False


@pytest.mark.asyncio
async def test_forced_timeout() -> None:
    provider = make_provider(lambda request: httpx.Response(200), force_failure="timeout")

    with pytest.raises(AiRequestError) as exc_info:
        await provider.generate("prompt")

    assert exc_info.value.status_code == 503
    assert exc_info.value.code == "ETIMEDOUT"
    assert await provider.health_check() is False


@pytest.mark.parametrize("forced, retriable", [("429", True), ("400", False), ("502", True)])
@pytest.mark.asyncio
async def test_forced_status(forced: str, retriable: bool) -> None:
    provider = make_provider(lambda request: httpx.Response(200), force_failure=forced)

    with pytest.raises(AiRequestError) as exc_info:
        await provider.generate("prompt")

    assert exc_info.value.status_code == int(forced)
    assert exc_info.value.code == f"FORCED_{forced}"
    assert is_retriable(exc_info.value) is retriable


@pytest.mark.asyncio
async def test_force_failure_off_and_unrecognized_proceed() -> None:
    handler = lambda request: httpx.Response(200, json=candidate_body("text"))  # noqa: E731

    assert await make_provider(handler, force_failure="off").generate("prompt") == "text"
    assert await make_provider(handler, force_failure="sometimes").generate("prompt") == "text"
