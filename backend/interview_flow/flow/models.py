from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional


@dataclass(frozen=True)
class ResponseAnalysis:
    """
    Score of ONE candidate answer.
    Consumed once by the difficulty controller, kept as FlowState.last_analysis.
    """
    mvp_keywords: tuple[str, ...] = ()
    confidence: int = 5
    technical_accuracy: int = 5
    completeness: int = 5
    overall_score: int = 5
    suggested_next_difficulty: int = 5
    reasoning: str = ""

    def to_dict(self) -> dict:
        return {
            "mvpKeywords": list(self.mvp_keywords),
            "confidence": self.confidence,
            "technicalAccuracy": self.technical_accuracy,
            "completeness": self.completeness,
            "overallScore": self.overall_score,
            "suggestedNextDifficulty": self.suggested_next_difficulty,
            "reasoning": self.reasoning,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ResponseAnalysis":
        return cls(
            mvp_keywords=tuple(str(k) for k in (data.get("mvpKeywords") or [])),
            confidence=int(data.get("confidence", 5)),
            technical_accuracy=int(data.get("technicalAccuracy", 5)),
            completeness=int(data.get("completeness", 5)),
            overall_score=int(data.get("overallScore", 5)),
            suggested_next_difficulty=int(data.get("suggestedNextDifficulty", 5)),
            reasoning=str(data.get("reasoning") or ""),
        )


@dataclass(frozen=True)
class QuestionRecord:
    question: str
    timestamp: str
    difficulty: int
    category: str = "adaptive"

    def to_dict(self) -> dict:
        return {
            "question": self.question,
            "timestamp": self.timestamp,
            "difficulty": self.difficulty,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuestionRecord":
        return cls(
            question=str(data.get("question") or ""),
            timestamp=str(data.get("timestamp") or ""),
            difficulty=int(data.get("difficulty", 0)),
            category=str(data.get("category") or "adaptive"),
        )


@dataclass(frozen=True)
class FlowState:
    """
    Persisted adaptive-interview progress for ONE session.
    Instances are never mutated; every update goes through `evolve`.
    """
    session_id: str
    role: str
    tech_stack: tuple[str, ...]
    base_difficulty: int
    current_difficulty: int
    total_questions: int
    consecutive_correct: int = 0
    consecutive_incorrect: int = 0
    questions_asked: int = 0
    mvp_keywords: tuple[str, ...] = ()
    question_history: tuple[QuestionRecord, ...] = ()
    last_analysis: Optional[ResponseAnalysis] = None

    def evolve(self, **changes: Any) -> "FlowState":
        return replace(self, **changes)

    def difficulty_progression(self) -> list[int]:
        return [record.difficulty for record in self.question_history]

    def to_dict(self) -> dict:
        payload = {
            "sessionId": self.session_id,
            "role": self.role,
            "techStack": list(self.tech_stack),
            "baseDifficulty": self.base_difficulty,
            "currentDifficulty": self.current_difficulty,
            "totalQuestions": self.total_questions,
            "consecutiveCorrect": self.consecutive_correct,
            "consecutiveIncorrect": self.consecutive_incorrect,
            "questionsAsked": self.questions_asked,
            "mvpKeywords": list(self.mvp_keywords),
            "questionHistory": [record.to_dict() for record in self.question_history],
        }
        if self.last_analysis is not None:
            payload["lastAnalysis"] = self.last_analysis.to_dict()
        return payload

    @classmethod
    def from_dict(cls, data: dict) -> "FlowState":
        last_analysis = data.get("lastAnalysis")
        return cls(
            session_id=str(data["sessionId"]),
            role=str(data.get("role") or ""),
            tech_stack=tuple(str(t) for t in (data.get("techStack") or [])),
            base_difficulty=int(data["baseDifficulty"]),
            current_difficulty=int(data.get("currentDifficulty", data["baseDifficulty"])),
            total_questions=int(data["totalQuestions"]),
            consecutive_correct=int(data.get("consecutiveCorrect", 0)),
            consecutive_incorrect=int(data.get("consecutiveIncorrect", 0)),
            questions_asked=int(data.get("questionsAsked", 0)),
            mvp_keywords=tuple(str(k) for k in (data.get("mvpKeywords") or [])),
            question_history=tuple(
                QuestionRecord.from_dict(item) for item in (data.get("questionHistory") or [])
            ),
            last_analysis=ResponseAnalysis.from_dict(last_analysis) if isinstance(last_analysis, dict) else None,
        )


@dataclass
class QuestionGenerationRequest:
    session_id: str
    user_response: str
    current_question: str
    flow_state: Optional[FlowState] = None

