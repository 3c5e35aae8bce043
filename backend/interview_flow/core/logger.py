import json
import logging
import os
from typing import Any

logger = logging.getLogger("interview_flow.events")

# Candidate speech and generated questions never reach the logs verbatim.
REDACTED_FIELDS = frozenset({
    "text",
    "transcript",
    "prompt",
    "answer",
    "user_response",
    "question",
    "current_question",
    "next_question",
})


def configure_logging(level: str | None = None) -> None:
    resolved = str(level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, resolved, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _redact(value: Any) -> dict:
    return {"redacted": True, "length": len(str(value or ""))}


def _clean(key: str, value: Any) -> Any:
    name = str(key or "").lower()
    if name in REDACTED_FIELDS:
        return _redact(value)
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(k): _clean(str(k), v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_clean(name, item) for item in value]
    return str(value)


def log_event(component: str, event: str, session_id: str, **fields) -> None:
    """One JSON line per engine event; free-text fields are reduced to their length."""
    record = {
        "component": str(component or "interview_flow"),
        "event": str(event or "unknown"),
        "session_id": str(session_id or ""),
    }
    for key, value in fields.items():
        record[str(key)] = _clean(str(key), value)
    logger.info(json.dumps(record, ensure_ascii=False, default=str))
