import random

from interview_flow.difficulty.controller import (
    DifficultyController,
    KeywordAccumulator,
    blend_difficulty,
)
from interview_flow.flow.models import FlowState, ResponseAnalysis


def _state(base: int = 5, **changes) -> FlowState:
    state = FlowState(
        session_id="d-1",
        role="Backend Engineer",
        tech_stack=("Python",),
        base_difficulty=base,
        current_difficulty=base,
        total_questions=10,
    )
    return state.evolve(**changes) if changes else state


def _analysis(overall: int, suggested: int, keywords=()) -> ResponseAnalysis:
    return ResponseAnalysis(
        mvp_keywords=tuple(keywords),
        confidence=overall,
        technical_accuracy=overall,
        completeness=overall,
        overall_score=overall,
        suggested_next_difficulty=suggested,
        reasoning="test",
    )


def test_three_passes_escalate_and_reset_streak():
    controller = DifficultyController()
    state = _state(5)

    for _ in range(3):
        state = controller.advance(state, _analysis(8, 5))

    assert state.current_difficulty == 6
    assert state.consecutive_correct == 0
    assert state.consecutive_incorrect == 0
    assert state.questions_asked == 3


def test_two_fails_deescalate_and_reset_streak():
    controller = DifficultyController()
    state = _state(5)

    state = controller.advance(state, _analysis(3, 5))
    assert state.current_difficulty == 5
    assert state.consecutive_incorrect == 1

    state = controller.advance(state, _analysis(2, 5))
    assert state.current_difficulty == 4
    assert state.consecutive_incorrect == 0


def test_blend_rounds_half_up():
    assert blend_difficulty(6, 1) == 5
    assert blend_difficulty(5, 10) == 7
    assert blend_difficulty(5, 5) == 5

    state = DifficultyController().advance(_state(6), _analysis(5, 1))
    assert state.current_difficulty == 5


def test_neutral_round_keeps_streaks():
    controller = DifficultyController()
    state = _state(5, consecutive_correct=2)

    state = controller.advance(state, _analysis(5, 5))

    assert state.consecutive_correct == 2
    assert state.consecutive_incorrect == 0


def test_pass_breaks_fail_streak():
    controller = DifficultyController()
    state = controller.advance(_state(5), _analysis(3, 5))
    state = controller.advance(state, _analysis(9, 5))

    assert state.consecutive_incorrect == 0
    assert state.consecutive_correct == 1


def test_difficulty_stays_within_base_window():
    controller = DifficultyController()
    state = _state(2)

    for _ in range(12):
        state = controller.advance(state, _analysis(10, 10))

    assert state.current_difficulty == 5

    state = _state(9)
    for _ in range(12):
        state = controller.advance(state, _analysis(10, 10))
    assert state.current_difficulty == 10


def test_random_sequences_hold_bounds_and_streak_exclusivity():
    rng = random.Random(1234)
    controller = DifficultyController()

    for _ in range(50):
        base = rng.randint(1, 10)
        state = _state(base)
        for _ in range(20):
            state = controller.advance(state, _analysis(rng.randint(1, 10), rng.randint(1, 10)))
            assert 1 <= state.current_difficulty <= 10
            assert abs(state.current_difficulty - base) <= 3
            assert state.consecutive_correct == 0 or state.consecutive_incorrect == 0
            assert state.consecutive_correct < 3
            assert state.consecutive_incorrect < 2


def test_advance_does_not_mutate_input_and_merges_keywords():
    controller = DifficultyController()
    state = _state(5, mvp_keywords=("python",))

    updated = controller.advance(state, _analysis(6, 5, keywords=("asyncio", "python")))

    assert state.mvp_keywords == ("python",)
    assert state.questions_asked == 0
    assert updated.mvp_keywords == ("python", "asyncio")
    assert updated.last_analysis is not None


def test_keyword_merge_is_idempotent():
    accumulator = KeywordAccumulator()
    once = accumulator.merge(("a", "b"), ("b", "c"))
    twice = accumulator.merge(once, ("b", "c"))

    assert once == ("a", "b", "c")
    assert twice == once
