import threading
import time
from typing import Any


_lock = threading.Lock()

_COUNTERS = (
    "flow_sessions_initialized",
    "flow_rounds_completed",
    "flow_sessions_completed",
    "generation_fallbacks",
    "feedback_generated",
    "persistence_failures",
    "voice_calls_active",
    "voice_calls_total",
    "transport_errors",
    "interruptions_total",
    "interruptions_within_target",
    "cancellations_succeeded",
    "cancellations_failed",
    "interruption_delay_total_ms",
    "interruption_delay_samples",
)

_metrics: dict[str, float] = {name: 0.0 for name in _COUNTERS}


def increment_metric(name: str, amount: float = 1.0) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        _metrics[key] = float(_metrics.get(key, 0.0)) + float(amount)


def decrement_metric(name: str, amount: float = 1.0) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        next_value = float(_metrics.get(key, 0.0)) - float(amount)
        _metrics[key] = max(0.0, next_value)


def observe_interruption_delay_ms(value_ms: float, within_target: bool) -> None:
    delay = max(0.0, float(value_ms or 0.0))
    with _lock:
        _metrics["interruptions_total"] = float(_metrics.get("interruptions_total", 0.0)) + 1.0
        _metrics["interruption_delay_total_ms"] = float(_metrics.get("interruption_delay_total_ms", 0.0)) + delay
        _metrics["interruption_delay_samples"] = float(_metrics.get("interruption_delay_samples", 0.0)) + 1.0
        if within_target:
            _metrics["interruptions_within_target"] = float(_metrics.get("interruptions_within_target", 0.0)) + 1.0


def reset_metrics() -> None:
    with _lock:
        for key in list(_metrics.keys()):
            _metrics[key] = 0.0


def get_metrics_snapshot(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    with _lock:
        data = dict(_metrics)

    delay_samples = max(1.0, float(data.get("interruption_delay_samples") or 0.0))

    payload: dict[str, Any] = {"generated_at": time.time()}
    for name in _COUNTERS:
        if name == "interruption_delay_total_ms":
            payload[name] = float(data.get(name) or 0.0)
        else:
            payload[name] = int(data.get(name) or 0.0)
    payload["avg_interruption_delay_ms"] = round(
        float(data.get("interruption_delay_total_ms") or 0.0) / delay_samples, 2
    )

    if extra:
        payload.update(extra)
    return payload
