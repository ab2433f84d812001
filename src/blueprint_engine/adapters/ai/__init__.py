"""AI provider adapters."""

from blueprint_engine.adapters.ai.base import AIProvider, AiRequestError
from blueprint_engine.adapters.ai.gemini import GeminiProvider
from blueprint_engine.adapters.ai.stub import StubAIProvider
from blueprint_engine.config import settings


def get_ai_provider() -> AIProvider:
    """Get the AI provider selected by configuration."""
    if settings.ai_provider == "stub":
        return StubAIProvider()
    return GeminiProvider()


__all__ = [
    "AIProvider",
    "AiRequestError",
    "GeminiProvider",
    "StubAIProvider",
    "get_ai_provider",
]
