from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

from interview_flow.ai_reasoning.generator import TextGenerator
from interview_flow.ai_reasoning.json_utils import clean_plain_text, extract_json_array
from interview_flow.ai_reasoning.prompts.initial_questions_prompt import build_initial_questions_prompt
from interview_flow.ai_reasoning.prompts.next_question_prompt import build_next_question_prompt
from interview_flow.core.config import DEFAULT_TOTAL_QUESTIONS, MAX_DIFFICULTY, MIN_DIFFICULTY
from interview_flow.core.errors import (
    GenerationParseError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from interview_flow.core.logger import log_event
from interview_flow.difficulty.controller import DifficultyController
from interview_flow.flow.analyzer import ResponseAnalyzer
from interview_flow.flow.feedback import FeedbackGenerator
from interview_flow.flow.models import (
    FlowState,
    QuestionGenerationRequest,
    QuestionRecord,
    ResponseAnalysis,
)
from interview_flow.session.flow_state_store import FlowStateStore
from interview_flow.session.locks import SessionLockRegistry
from interview_flow.system_metrics import increment_metric

logger = logging.getLogger("interview_flow.flow.orchestrator")

INITIAL_QUESTION_COUNT = 3
INITIAL_CATEGORIES = ("role", "technical", "problem-solving")
CLOSING_MESSAGE = (
    "Thank you for completing the interview! Your responses have been analyzed "
    "and feedback will be generated shortly."
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_tech_stack(tech_stack) -> tuple[str, ...]:
    if tech_stack is None:
        return ()
    if isinstance(tech_stack, str):
        items = [tech_stack]
    else:
        items = list(tech_stack)
    return tuple(str(item).strip() for item in items if str(item or "").strip())


def fallback_initial_questions(role: str, tech_stack: Sequence[str]) -> list[str]:
    first_tech = tech_stack[0] if tech_stack else "your tech stack"
    return [
        f"Tell me about your experience with {role} positions.",
        f"How would you approach a challenging problem in {first_tech}?",
        "Describe a time when you had to learn a new technology quickly.",
    ]


def fallback_follow_up(state: FlowState, analysis: ResponseAnalysis) -> str:
    if analysis.mvp_keywords:
        return (
            f"You mentioned {analysis.mvp_keywords[0]}. Can you go deeper on how you have "
            f"used it in practice and what trade-offs you ran into?"
        )
    if state.tech_stack:
        return f"What is one trade-off you have faced when working with {state.tech_stack[0]}, and how did you handle it?"
    return "Can you walk me through another example from your experience that shows how you approach problems like this?"


class FlowOrchestrator:
    """
    Owns the adaptive flow lifecycle of every session:
    initialize -> analyze -> advance -> persist -> next question.

    At most one `generate_next_question` runs per session id at a time;
    later calls queue on the session lock and reload the stored state.
    """

    def __init__(
        self,
        generator: TextGenerator,
        store: FlowStateStore,
        analyzer: ResponseAnalyzer | None = None,
        feedback: FeedbackGenerator | None = None,
        difficulty_controller: DifficultyController | None = None,
        locks: SessionLockRegistry | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.generator = generator
        self.store = store
        self.analyzer = analyzer or ResponseAnalyzer(generator)
        self.feedback = feedback or FeedbackGenerator(generator)
        self.difficulty_controller = difficulty_controller or DifficultyController()
        self.locks = locks or SessionLockRegistry()
        self.clock = clock

    # -------------------------
    # PERSISTENCE
    # -------------------------

    async def _save(self, state: FlowState) -> None:
        try:
            await self.store.set(state)
        except Exception as exc:
            increment_metric("persistence_failures")
            logger.error("flow state write failed | session_id=%s err=%s", state.session_id, exc)
            raise PersistenceError(f"could not save flow state for {state.session_id}") from exc

    async def _restore(self, state: FlowState) -> None:
        try:
            await self.store.set(state)
        except Exception as exc:
            increment_metric("persistence_failures")
            logger.error("flow state rollback failed | session_id=%s err=%s", state.session_id, exc)
            return
        log_event("adaptive_flow", "round_rolled_back", state.session_id, questions_asked=state.questions_asked)

    async def get_state(self, session_id: str) -> FlowState | None:
        try:
            return await self.store.get(session_id)
        except Exception as exc:
            increment_metric("persistence_failures")
            logger.error("flow state read failed | session_id=%s err=%s", session_id, exc)
            raise PersistenceError(f"could not load flow state for {session_id}") from exc

    async def require_state(self, session_id: str) -> FlowState:
        state = await self.get_state(session_id)
        if state is None:
            raise NotFoundError(f"Flow state not found for session {session_id}")
        return state

    async def delete_state(self, session_id: str) -> bool:
        try:
            removed = await self.store.delete(session_id)
        except Exception as exc:
            increment_metric("persistence_failures")
            raise PersistenceError(f"could not delete flow state for {session_id}") from exc
        log_event("adaptive_flow", "state_deleted", session_id, removed=bool(removed))
        return bool(removed)

    # -------------------------
    # LIFECYCLE
    # -------------------------

    async def initialize(
        self,
        session_id: str,
        role: str,
        tech_stack,
        base_difficulty: int,
        total_questions: int = DEFAULT_TOTAL_QUESTIONS,
    ) -> FlowState:
        if not str(session_id or "").strip():
            raise ValidationError("sessionId is required")
        if not str(role or "").strip():
            raise ValidationError("role is required")
        if isinstance(base_difficulty, bool) or not isinstance(base_difficulty, int):
            raise ValidationError("baseDifficulty must be an integer")
        if not MIN_DIFFICULTY <= base_difficulty <= MAX_DIFFICULTY:
            raise ValidationError("baseDifficulty must be between 1 and 10")
        if isinstance(total_questions, bool) or not isinstance(total_questions, int) or total_questions < 1:
            raise ValidationError("totalQuestions must be a positive integer")

        state = FlowState(
            session_id=str(session_id).strip(),
            role=str(role).strip(),
            tech_stack=normalize_tech_stack(tech_stack),
            base_difficulty=base_difficulty,
            current_difficulty=base_difficulty,
            total_questions=total_questions,
        )
        await self._save(state)
        increment_metric("flow_sessions_initialized")
        log_event(
            "adaptive_flow",
            "initialized",
            state.session_id,
            base_difficulty=base_difficulty,
            total_questions=total_questions,
        )
        return state

    async def generate_initial_questions(self, role: str, tech_stack, difficulty: int) -> list[str]:
        stack = normalize_tech_stack(tech_stack)
        prompt = build_initial_questions_prompt({
            "role": role,
            "tech_stack": list(stack),
            "difficulty": difficulty,
        })
        try:
            raw = await self.generator.generate(prompt)
            parsed = extract_json_array(raw)
            questions = [str(item).strip() for item in parsed if isinstance(item, str) and item.strip()]
            if len(questions) < INITIAL_QUESTION_COUNT:
                raise GenerationParseError(f"expected {INITIAL_QUESTION_COUNT} questions, got {len(questions)}")
            return questions[:INITIAL_QUESTION_COUNT]
        except GenerationParseError as exc:
            logger.warning("initial questions parse failed, using fallback | err=%s", exc)
        except Exception as exc:
            logger.warning("initial questions generation failed, using fallback | err=%s", exc)

        increment_metric("generation_fallbacks")
        return fallback_initial_questions(role, stack)

    async def start(
        self,
        session_id: str,
        role: str,
        tech_stack,
        base_difficulty: int,
        total_questions: int = DEFAULT_TOTAL_QUESTIONS,
    ) -> tuple[FlowState, list[str]]:
        """Initialize a session and seed its opening questions into the history.

        Seeded questions count as asked, so the adaptive phase runs for
        `total_questions - len(questions)` rounds.
        """
        state = await self.initialize(session_id, role, tech_stack, base_difficulty, total_questions)
        questions = await self.generate_initial_questions(state.role, state.tech_stack, state.base_difficulty)
        questions = questions[:state.total_questions]

        timestamp = self.clock().isoformat()
        seeded = tuple(
            QuestionRecord(
                question=question,
                timestamp=timestamp,
                difficulty=state.base_difficulty,
                category=INITIAL_CATEGORIES[index] if index < len(INITIAL_CATEGORIES) else "initial",
            )
            for index, question in enumerate(questions)
        )
        state = state.evolve(
            question_history=state.question_history + seeded,
            questions_asked=state.questions_asked + len(seeded),
        )
        await self._save(state)
        return state, questions

    async def generate_next_question(self, request: QuestionGenerationRequest) -> str:
        if not str(request.user_response or "").strip():
            raise ValidationError("userResponse is required")
        if not str(request.current_question or "").strip():
            raise ValidationError("currentQuestion is required")

        async with self.locks.hold(request.session_id):
            state = await self.get_state(request.session_id)
            if state is None:
                state = request.flow_state
            if state is None:
                raise NotFoundError(f"Flow state not found for session {request.session_id}")

            if not self.should_continue(state):
                # A queued call can land after the final round completed.
                return CLOSING_MESSAGE

            analysis = await self.analyzer.analyze(
                request.user_response,
                request.current_question,
                state.role,
                state.tech_stack,
                state.current_difficulty,
            )
            updated = self.difficulty_controller.advance(state, analysis)
            await self._save(updated)
            increment_metric("flow_rounds_completed")

            if self.should_continue(updated):
                question = await self._follow_up_question(updated, analysis, request)
                category = "adaptive"
            else:
                question = CLOSING_MESSAGE
                category = "closing"
                increment_metric("flow_sessions_completed")

            updated = updated.evolve(
                question_history=updated.question_history + (
                    QuestionRecord(
                        question=question,
                        timestamp=self.clock().isoformat(),
                        difficulty=updated.current_difficulty,
                        category=category,
                    ),
                )
            )
            try:
                await self._save(updated)
            except PersistenceError:
                # The advanced document has no history record yet; put the
                # pre-round state back so a retry replays the whole round.
                await self._restore(state)
                raise

        log_event(
            "adaptive_flow",
            "round_completed",
            updated.session_id,
            overall_score=analysis.overall_score,
            difficulty_from=state.current_difficulty,
            difficulty_to=updated.current_difficulty,
            questions_asked=updated.questions_asked,
            total_questions=updated.total_questions,
            category=category,
        )
        return question

    async def _follow_up_question(
        self,
        state: FlowState,
        analysis: ResponseAnalysis,
        request: QuestionGenerationRequest,
    ) -> str:
        prompt = build_next_question_prompt({
            "role": state.role,
            "tech_stack": list(state.tech_stack),
            "current_difficulty": state.current_difficulty,
            "questions_asked": state.questions_asked,
            "total_questions": state.total_questions,
            "current_question": request.current_question,
            "user_response": request.user_response,
            "mvp_keywords": list(state.mvp_keywords),
            "analysis": analysis.to_dict(),
            "question_history": [record.to_dict() for record in state.question_history],
        })
        try:
            question = clean_plain_text(await self.generator.generate(prompt))
        except Exception as exc:
            logger.warning("next question generation failed | session_id=%s err=%s", state.session_id, exc)
            question = ""

        if not question:
            increment_metric("generation_fallbacks")
            return fallback_follow_up(state, analysis)
        return question

    # -------------------------
    # QUERIES
    # -------------------------

    @staticmethod
    def should_continue(state: FlowState) -> bool:
        return state.questions_asked < state.total_questions

    @staticmethod
    def questions_remaining(state: FlowState) -> int:
        return max(0, state.total_questions - state.questions_asked)

    @staticmethod
    def summarize(state: FlowState) -> str:
        progression = " → ".join(str(d) for d in state.difficulty_progression())
        return "\n".join([
            "Interview Summary:",
            f"- Questions Asked: {state.questions_asked}/{state.total_questions}",
            f"- Difficulty Progression: {progression}",
            f"- Final Difficulty: {state.current_difficulty}/10 (Started at {state.base_difficulty}/10)",
            f"- Key Topics Covered: {', '.join(state.mvp_keywords)}",
            f"- Consecutive Correct Streak: {state.consecutive_correct}",
        ])
