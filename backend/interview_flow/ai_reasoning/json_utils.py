import json
import re
from typing import Any

from interview_flow.core.errors import GenerationParseError

_FENCE_RE = re.compile(r"^\s*```(?:json|JSON)?\s*\n?([\s\S]*?)\n?\s*```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` or ``` ... ``` block."""
    value = str(text or "").strip()
    match = _FENCE_RE.match(value)
    if match:
        return match.group(1).strip()
    return value


def _loads(candidate: str) -> Any:
    try:
        return json.loads(candidate)
    except (TypeError, ValueError) as exc:
        raise GenerationParseError(f"invalid JSON: {exc}") from exc


def _slice_between(text: str, opener: str, closer: str) -> str | None:
    start = text.find(opener)
    end = text.rfind(closer)
    if start != -1 and end != -1 and end > start:
        return text[start:end + 1]
    return None


def extract_json_object(text: str) -> dict:
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise GenerationParseError("empty generation output")

    try:
        parsed = _loads(cleaned)
    except GenerationParseError:
        sliced = _slice_between(cleaned, "{", "}")
        if sliced is None:
            raise
        parsed = _loads(sliced)

    if not isinstance(parsed, dict):
        raise GenerationParseError("expected a JSON object")
    return parsed


def extract_json_array(text: str) -> list:
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise GenerationParseError("empty generation output")

    try:
        parsed = _loads(cleaned)
    except GenerationParseError:
        sliced = _slice_between(cleaned, "[", "]")
        if sliced is None:
            raise
        parsed = _loads(sliced)

    if not isinstance(parsed, list):
        raise GenerationParseError("expected a JSON array")
    return parsed


def clean_plain_text(text: str) -> str:
    """Trim a plain-text answer and drop one pair of wrapping quotes."""
    value = strip_code_fences(text).strip()
    if value[:1] in {'"', "'"}:
        value = value[1:]
    if value[-1:] in {'"', "'"}:
        value = value[:-1]
    return value.strip()
