"""Base interface for blueprint generation AI providers."""

from abc import ABC, abstractmethod
from typing import Any


class AiRequestError(Exception):
    """A generation call failed.

    Carries the HTTP-style ``status_code`` used for retry classification and
    whatever ``details`` the provider returned (parsed JSON body, plain text,
    or ``None``).
    """

    def __init__(self, message: str, status_code: int, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details

    @property
    def status(self) -> int:
        return self.status_code

    @property
    def code(self) -> str | None:
        """Error code from the details, if the provider supplied one.

        Looks at ``details["code"]`` first, then at the ``error.status``
        string Gemini puts in its error bodies (e.g. ``RESOURCE_EXHAUSTED``).
        """
        if not isinstance(self.details, dict):
            return None
        code = self.details.get("code")
        if isinstance(code, str):
            return code
        error = self.details.get("error")
        if isinstance(error, dict) and isinstance(error.get("status"), str):
            return error["status"]
        return None

    def __repr__(self) -> str:
        return f"AiRequestError({self.message!r}, status_code={self.status_code})"


class AIProvider(ABC):
    """Abstract base class for blueprint generation providers.

    Implementations:
    - GeminiProvider: Google Gemini generateContent over HTTP
    - StubAIProvider: Returns a canned blueprint for testing

    Providers make exactly one call per ``generate``; retry policy lives in
    the retry processor.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Generate the raw blueprint text for a prompt.

        Args:
            prompt: Fully built blueprint prompt

        Returns:
            The model's raw text output

        Raises:
            AiRequestError: If the call fails or returns no text
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is available.

        Returns:
            True if provider is operational
        """
        return True
