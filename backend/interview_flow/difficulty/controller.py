import logging
from dataclasses import dataclass

from interview_flow.core.config import MAX_DIFFICULTY, MAX_DIFFICULTY_DEVIATION, MIN_DIFFICULTY
from interview_flow.flow.models import FlowState, ResponseAnalysis

logger = logging.getLogger("interview_flow.difficulty")


PASS_SCORE = 7
FAIL_SCORE = 4
PASS_STREAK_TO_ESCALATE = 3
FAIL_STREAK_TO_DEESCALATE = 2

# Blend weights in tenths: 0.7 current + 0.3 suggested.
CURRENT_WEIGHT_TENTHS = 7
SUGGESTION_WEIGHT_TENTHS = 3


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def blend_difficulty(current: int, suggested: int) -> int:
    """0.7 * current + 0.3 * suggested, rounded half-up.

    Done in integer tenths so .5 ties are exact.
    """
    weighted_tenths = CURRENT_WEIGHT_TENTHS * int(current) + SUGGESTION_WEIGHT_TENTHS * int(suggested)
    return (weighted_tenths + 5) // 10


@dataclass
class KeywordAccumulator:
    def merge(self, existing: tuple[str, ...], incoming) -> tuple[str, ...]:
        merged = list(existing)
        for keyword in incoming or ():
            if keyword not in merged:
                merged.append(keyword)
        return tuple(merged)


@dataclass
class StreakTracker:
    pass_score: int = PASS_SCORE
    fail_score: int = FAIL_SCORE

    def classify(self, overall_score: int) -> str:
        if overall_score >= self.pass_score:
            return "pass"
        if overall_score <= self.fail_score:
            return "fail"
        return "neutral"

    def update(self, correct: int, incorrect: int, outcome: str) -> tuple[int, int]:
        if outcome == "pass":
            return correct + 1, 0
        if outcome == "fail":
            return 0, incorrect + 1
        # Neutral rounds neither extend nor break a streak.
        return correct, incorrect


@dataclass
class DifficultyPolicy:
    escalate_after: int = PASS_STREAK_TO_ESCALATE
    deescalate_after: int = FAIL_STREAK_TO_DEESCALATE
    max_deviation: int = MAX_DIFFICULTY_DEVIATION

    def choose_next(
        self,
        current: int,
        suggested: int,
        correct: int,
        incorrect: int,
    ) -> tuple[int, int, int, str]:
        """Returns (difficulty, correct, incorrect, rule)."""
        if correct >= self.escalate_after:
            return min(MAX_DIFFICULTY, current + 1), 0, incorrect, "escalate"
        if incorrect >= self.deescalate_after:
            return max(MIN_DIFFICULTY, current - 1), correct, 0, "deescalate"
        return blend_difficulty(current, suggested), correct, incorrect, "blend"

    def bound(self, difficulty: int, base: int) -> int:
        bounded = clamp(difficulty, base - self.max_deviation, base + self.max_deviation)
        return clamp(bounded, MIN_DIFFICULTY, MAX_DIFFICULTY)


class DifficultyController:
    """
    Pure state transition: (FlowState, ResponseAnalysis) -> FlowState.
    Never mutates its input and never reads the clock.
    """

    def __init__(self):
        self.keywords = KeywordAccumulator()
        self.tracker = StreakTracker()
        self.policy = DifficultyPolicy()

    def advance(self, state: FlowState, analysis: ResponseAnalysis) -> FlowState:
        keywords = self.keywords.merge(state.mvp_keywords, analysis.mvp_keywords)

        outcome = self.tracker.classify(analysis.overall_score)
        correct, incorrect = self.tracker.update(
            state.consecutive_correct,
            state.consecutive_incorrect,
            outcome,
        )

        next_difficulty, correct, incorrect, rule = self.policy.choose_next(
            current=state.current_difficulty,
            suggested=analysis.suggested_next_difficulty,
            correct=correct,
            incorrect=incorrect,
        )
        next_difficulty = self.policy.bound(next_difficulty, state.base_difficulty)
        logger.debug(
            "difficulty advance | session_id=%s outcome=%s rule=%s %s->%s",
            state.session_id,
            outcome,
            rule,
            state.current_difficulty,
            next_difficulty,
        )

        return state.evolve(
            mvp_keywords=keywords,
            consecutive_correct=correct,
            consecutive_incorrect=incorrect,
            current_difficulty=next_difficulty,
            questions_asked=state.questions_asked + 1,
            last_analysis=analysis,
        )

