"""Google Gemini provider for blueprint generation."""

from typing import Any

import httpx

from blueprint_engine.adapters.ai.base import AIProvider, AiRequestError
from blueprint_engine.config import settings
from blueprint_engine.logging import get_logger

logger = get_logger(__name__)

RATE_LIMIT_MESSAGE = "AI service rate limit exceeded. Please try again in a moment."
UNAVAILABLE_MESSAGE = "AI service temporarily unavailable"

FORCED_FAILURE_MESSAGES = {
    400: "Forced Gemini bad request for testing",
    401: "Forced Gemini unauthorized for testing",
    403: "Forced Gemini forbidden for testing",
    404: "Forced Gemini not found for testing",
    429: "Forced Gemini rate limit for testing",
    500: "Forced Gemini internal error for testing",
    502: "Forced Gemini bad gateway for testing",
    503: "Forced Gemini service unavailable for testing",
}


def _array_of(properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {
        "type": "array",
        "items": {"type": "object", "properties": properties, "required": required},
    }


# Only the overview is required; the model picks which other sections fit the content
BLUEPRINT_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "overview": {
            "type": "object",
            "properties": {
                "summary": {"type": "string"},
                "mistakes": {"type": "array", "items": {"type": "string"}},
                "guidance": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["summary", "mistakes", "guidance"],
        },
        "sequential_steps": _array_of(
            {
                "step_number": {"type": "number"},
                "title": {"type": "string"},
                "description": {"type": "string"},
                "deliverable": {"type": "string"},
                "estimated_time": {"type": "string"},
            },
            ["step_number", "title", "description", "deliverable"],
        ),
        "daily_habits": _array_of(
            {
                "id": {"type": "number"},
                "title": {"type": "string"},
                "description": {"type": "string"},
                "timeframe": {"type": "string"},
            },
            ["id", "title", "description", "timeframe"],
        ),
        "trigger_actions": _array_of(
            {
                "situation": {"type": "string"},
                "immediate_action": {"type": "string"},
                "timeframe": {"type": "string"},
            },
            ["situation", "immediate_action", "timeframe"],
        ),
        "decision_checklist": _array_of(
            {"question": {"type": "string"}, "weight": {"type": "string"}},
            ["question"],
        ),
        "resources": _array_of(
            {
                "name": {"type": "string"},
                "type": {"type": "string"},
                "description": {"type": "string"},
            },
            ["name", "type", "description"],
        ),
    },
    "required": ["overview"],
}

GENERATION_CONFIG: dict[str, Any] = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 2048,
    "responseMimeType": "application/json",
    "responseSchema": BLUEPRINT_RESPONSE_SCHEMA,
}


class GeminiProvider(AIProvider):
    """Google Gemini ``generateContent`` provider.

    Makes one POST per call and maps failures to ``AiRequestError``:
    HTTP 429 stays 429, every other non-2xx becomes 503, and a 200 without
    candidate text becomes 500.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        force_failure: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize Gemini provider.

        Args:
            api_key: Google AI API key (uses GOOGLE_AI_API_KEY from settings if not provided)
            model: Model name (defaults to settings.gemini_model)
            base_url: API base URL (defaults to settings.gemini_base_url)
            timeout: Request timeout in seconds
            force_failure: Forced failure mode for testing (off, timeout, or a status code)
            client: Optional shared HTTP client
        """
        self.api_key = api_key or settings.google_ai_api_key
        self.model = model or settings.gemini_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout = timeout or settings.gemini_timeout_seconds
        self.force_failure = force_failure if force_failure is not None else settings.gemini_force_failure
        self._client = client

        if not self.api_key:
            logger.warning("gemini_api_key_missing")

    @property
    def name(self) -> str:
        return f"gemini:{self.model}"

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _check_forced_failure(self) -> None:
        """Raise the configured forced failure, if any."""
        forced = (self.force_failure or "").strip().lower()
        if not forced or forced == "off":
            return

        if forced == "timeout":
            raise AiRequestError(
                "Forced Gemini timeout for testing",
                503,
                {"code": "ETIMEDOUT", "message": "Forced Gemini timeout for testing"},
            )

        if forced.isdigit():
            status_code = int(forced)
            raise AiRequestError(
                FORCED_FAILURE_MESSAGES.get(status_code, "Forced Gemini failure for testing"),
                status_code,
                {"code": f"FORCED_{status_code}", "message": "Forced Gemini failure for testing"},
            )

        logger.warning("gemini_force_failure_unrecognized", value=forced)

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key or "",
        }
        if self._client is not None:
            return await self._client.post(self.endpoint, headers=headers, json=payload)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.endpoint, headers=headers, json=payload)

    async def generate(self, prompt: str) -> str:
        """Generate blueprint text using the Gemini API."""
        if not self.api_key:
            raise AiRequestError(UNAVAILABLE_MESSAGE, 503)

        self._check_forced_failure()

        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": GENERATION_CONFIG,
        }

        logger.debug("gemini_request", model=self.model, prompt_length=len(prompt))

        try:
            response = await self._post(payload)
        except httpx.TimeoutException as e:
            raise AiRequestError(
                "AI service request timeout",
                503,
                {"code": "ETIMEDOUT", "message": str(e)},
            ) from e
        except httpx.TransportError as e:
            raise AiRequestError(
                UNAVAILABLE_MESSAGE,
                503,
                {"code": type(e).__name__, "message": str(e)},
            ) from e

        if not response.is_success:
            details: Any
            try:
                details = response.json()
            except ValueError:
                details = response.text or None

            if response.status_code == 429:
                raise AiRequestError(RATE_LIMIT_MESSAGE, 429, details)
            raise AiRequestError(UNAVAILABLE_MESSAGE, 503, details)

        try:
            data = response.json()
        except ValueError:
            data = None

        text = _first_candidate_text(data)
        if not text:
            raise AiRequestError("AI failed to generate blueprint", 500, data)

        usage = data.get("usageMetadata", {}) if isinstance(data, dict) else {}
        logger.info(
            "gemini_response",
            model=self.model,
            tokens_used=usage.get("totalTokenCount", 0),
            response_length=len(text),
        )
        return text

    async def health_check(self) -> bool:
        """Gemini is usable when a key is configured and no failure is forced."""
        forced = (self.force_failure or "").strip().lower()
        return bool(self.api_key) and forced in ("", "off")


def _first_candidate_text(data: Any) -> str | None:
    """Pull ``candidates[0].content.parts[0].text`` out of a response body."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None
