"""
Turns raw generator text into backlog suggestions.

The generator is asked for a JSON object with a single top-level list
(``epics`` or ``stories``). Models frequently wrap that object in a Markdown
code fence, so the fence is stripped before parsing.
"""
import json
import re
from typing import Any, List

from ..core.exceptions import SuggestionParseError
from ..schemas.ai import AiSuggestion
from ..schemas.common import Priority

EPICS_KEY = "epics"
STORIES_KEY = "stories"

_OPENING_FENCE = re.compile(r"^```[^\n]*\n?")


def strip_code_fence(raw: str) -> str:
    """Remove an optional ```lang ... ``` wrapper around the payload."""
    text = raw.strip()
    if text.startswith("```"):
        text = _OPENING_FENCE.sub("", text, count=1)
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    return text


def normalize_priority(value: Any) -> Priority:
    """Lower-case and map onto the priority enumeration; anything else is medium."""
    if value is None:
        return Priority.MEDIUM
    try:
        return Priority(str(value).strip().lower())
    except ValueError:
        return Priority.MEDIUM


def _clean_description(value: Any):
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_suggestion(entry: Any) -> AiSuggestion:
    if not isinstance(entry, dict):
        raise SuggestionParseError(f"Expected an object per suggestion, got {type(entry).__name__}")

    return AiSuggestion(
        name=str(entry.get("name") or "").strip(),
        description=_clean_description(entry.get("description")),
        priority=normalize_priority(entry.get("priority")),
    )


def parse_suggestions(raw: str, key: str) -> List[AiSuggestion]:
    """Parse generator output and read the suggestion list stored under ``key``."""
    if not isinstance(raw, str):
        raise SuggestionParseError("Generator response is not text")

    text = strip_code_fence(raw)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise SuggestionParseError(f"Generator response is not valid JSON: {e.msg}") from e

    if not isinstance(payload, dict) or key not in payload:
        raise SuggestionParseError(f"Generator response has no '{key}' key")

    entries = payload[key]
    if not isinstance(entries, list):
        raise SuggestionParseError(f"'{key}' in generator response is not a list")

    return [_to_suggestion(entry) for entry in entries]


def parse_epics(raw: str) -> List[AiSuggestion]:
    return parse_suggestions(raw, EPICS_KEY)


def parse_stories(raw: str) -> List[AiSuggestion]:
    return parse_suggestions(raw, STORIES_KEY)
