"""Turns raw model text into a validated blueprint payload."""

import json
import re
from typing import Any

from json_repair import repair_json

from blueprint_engine.domain.blueprint import BlueprintPayload, build_legacy_habits

SNIPPET_LENGTH = 500

_CODE_FENCE = re.compile(r"```(?:json|javascript|typescript|ts)?\s*([\s\S]*?)```", re.IGNORECASE)


class BlueprintParseError(Exception):
    """The model's text could not be turned into a valid blueprint.

    Keeps the first 500 characters of the raw and sanitized text for
    diagnostics.
    """

    def __init__(self, message: str, raw: str, sanitized: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.raw_snippet = raw[:SNIPPET_LENGTH]
        self.sanitized_snippet = sanitized[:SNIPPET_LENGTH] if sanitized is not None else None


def strip_code_fence(text: str) -> str:
    """Return the interior of the first fenced code block, or the text unchanged."""
    match = _CODE_FENCE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return text


def extract_json_object(text: str) -> str | None:
    """Find the first balanced ``{...}`` object in the text.

    Braces inside string literals are ignored (escape sequences honored). An
    unterminated object is returned from its opening brace to the end of the
    text so the repair pass can still try to close it.
    """
    start = -1
    depth = 0
    in_string = False
    escaped = False

    for i, char in enumerate(text):
        if start == -1:
            if char == "{":
                start = i
                depth = 1
            continue

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    return text[start:] if start != -1 else None


def sanitize_response(ai_text: str) -> str:
    """Reduce the model output to the JSON object it is supposed to contain."""
    without_fence = strip_code_fence(ai_text.strip())
    extracted = extract_json_object(without_fence)
    if extracted:
        return extracted.strip()
    return without_fence


def _load(sanitized: str) -> Any:
    try:
        return json.loads(sanitized)
    except json.JSONDecodeError:
        pass
    # json_repair returns "" when nothing salvageable is left
    repaired = repair_json(sanitized)
    return json.loads(repaired)


def parse_blueprint_response(ai_text: str) -> BlueprintPayload:
    """Parse the model output into a ``BlueprintPayload``.

    Raises:
        BlueprintParseError: If no JSON object can be recovered, or the
            object has no ``overview.summary``.
    """
    sanitized = sanitize_response(ai_text)

    try:
        parsed = _load(sanitized)
    except Exception as e:
        raise BlueprintParseError("AI response is not valid JSON", ai_text, sanitized) from e

    if not isinstance(parsed, dict):
        raise BlueprintParseError("AI response is not valid JSON", ai_text, sanitized)

    overview = parsed.get("overview")
    summary = overview.get("summary") if isinstance(overview, dict) else None
    if not isinstance(summary, str) or not summary:
        raise BlueprintParseError(
            "AI response missing required overview section", ai_text, sanitized
        )

    blueprint = BlueprintPayload.from_dict(parsed)

    # Older prompts asked for a flat "habits" array
    if blueprint.daily_habits is None:
        legacy = build_legacy_habits(parsed.get("habits"))
        if legacy:
            blueprint.daily_habits = legacy

    return blueprint
