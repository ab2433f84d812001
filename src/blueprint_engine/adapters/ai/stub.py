"""Stub AI provider for testing."""

import json

from blueprint_engine.adapters.ai.base import AIProvider
from blueprint_engine.logging import get_logger

logger = get_logger(__name__)


class StubAIProvider(AIProvider):
    """Stub provider that returns a canned blueprint without calling any API."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "stub"

    async def generate(self, prompt: str) -> str:
        """Return a mock blueprint response wrapped the way models often wrap JSON."""
        self.calls.append(prompt)
        logger.info("stub_ai_generate", prompt_length=len(prompt))

        content = json.dumps(
            {
                "overview": {
                    "summary": "Small daily actions compound into lasting change. "
                    "This plan turns the content's core ideas into repeatable habits.",
                    "mistakes": [
                        "Trying to change everything at once",
                        "Skipping the review step after a missed day",
                    ],
                    "guidance": [
                        "Anchor each habit to an existing routine",
                        "Track completion daily and review weekly",
                    ],
                },
                "daily_habits": [
                    {
                        "id": i + 1,
                        "title": title,
                        "description": description,
                        "timeframe": f"Week {i + 1}",
                    }
                    for i, (title, description) in enumerate(
                        [
                            ("Morning intention", "Write one sentence about today's focus."),
                            ("Two-minute start", "Begin the habit for just two minutes."),
                            ("Evening review", "Note one win and one lesson before bed."),
                        ]
                    )
                ],
                "decision_checklist": [
                    {"question": "Does this move me toward my goal?", "weight": "Critical"},
                    {"question": "Can I do it again tomorrow?", "weight": "Important"},
                ],
            },
            indent=2,
        )
        return f"Here is your blueprint:\n```json\n{content}\n```"
