import logging
import math
from typing import Optional

from interview_flow.core.config import MAX_INTERRUPTION_DELAY_MS

logger = logging.getLogger("interview_flow.interruption.metrics")


def _round_ms(value: float) -> int:
    if math.isinf(value):
        return 0
    return int(math.floor(value + 0.5))


class MetricsRecorder:
    """
    Interruption latency statistics for ONE live call.
    Process-local; never shared across calls.
    """

    def __init__(self, max_interruption_delay_ms: float = MAX_INTERRUPTION_DELAY_MS, enable_logging: bool = True):
        self.max_interruption_delay_ms = float(max_interruption_delay_ms)
        self.enable_logging = enable_logging
        self.reset()

    def reset(self) -> None:
        self.delays: list[float] = []
        self.total = 0
        self.average = 0.0
        self.fastest = math.inf
        self.slowest = 0.0
        self.successful_cancellations = 0
        self.failed_cancellations = 0
        self.last_failure_reason: Optional[str] = None
        self.last_interruption_at: Optional[float] = None

    def is_acceptable(self, delay: float) -> bool:
        return float(delay) <= self.max_interruption_delay_ms

    def record(self, delay: float, at: Optional[float] = None) -> None:
        delay = float(delay)
        self.delays.append(delay)
        self.total += 1
        self.average = sum(self.delays) / len(self.delays)
        if delay < self.fastest:
            self.fastest = delay
        if delay > self.slowest:
            self.slowest = delay
        if at is not None:
            self.last_interruption_at = at

        if self.enable_logging:
            logger.info(
                "interruption recorded | delay_ms=%.1f total=%s avg=%s fastest=%s slowest=%s",
                delay,
                self.total,
                _round_ms(self.average),
                _round_ms(self.fastest),
                _round_ms(self.slowest),
            )

    def record_successful_cancellation(self) -> None:
        self.successful_cancellations += 1
        if self.enable_logging:
            logger.info("speech cancellation succeeded")

    def record_failed_cancellation(self, reason: Optional[str] = None) -> None:
        self.failed_cancellations += 1
        self.last_failure_reason = reason
        if self.enable_logging:
            logger.warning("speech cancellation failed | reason=%s", reason)

    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.successful_cancellations / self.total * 100.0

    @property
    def within_target(self) -> bool:
        return self.average <= self.max_interruption_delay_ms

    def snapshot(self) -> dict:
        return {
            "totalInterruptions": self.total,
            "averageInterruptionDelay": round(self.average, 2),
            "fastestInterruption": None if math.isinf(self.fastest) else self.fastest,
            "slowestInterruption": self.slowest,
            "successfulCancellations": self.successful_cancellations,
            "failedCancellations": self.failed_cancellations,
            "lastInterruptionTime": self.last_interruption_at,
            "maxInterruptionDelay": self.max_interruption_delay_ms,
            "withinTarget": self.within_target,
        }

    def report(self) -> str:
        success_rate = f"{self.success_rate:.1f}" if self.total > 0 else "0"
        verdict = (
            "Performance is within target range"
            if self.within_target
            else "Performance needs improvement"
        )
        return "\n".join([
            "Interruption Performance Report",
            "================================",
            f"Total Interruptions: {self.total}",
            f"Average Delay: {_round_ms(self.average)}ms",
            f"Fastest Interruption: {_round_ms(self.fastest)}ms",
            f"Slowest Interruption: {_round_ms(self.slowest)}ms",
            f"Success Rate: {success_rate}%",
            f"Target Delay: <{_round_ms(self.max_interruption_delay_ms)}ms",
            "",
            verdict,
        ])
