import logging
from dataclasses import dataclass

from interview_flow.ai_reasoning.generator import TextGenerator
from interview_flow.ai_reasoning.json_utils import extract_json_object
from interview_flow.ai_reasoning.prompts.feedback_prompt import FEEDBACK_CATEGORIES, build_feedback_prompt
from interview_flow.core.errors import GenerationParseError, ValidationError
from interview_flow.system_metrics import increment_metric

logger = logging.getLogger("interview_flow.flow.feedback")

FALLBACK_SCORE = 65
FALLBACK_COMMENT = "Feedback generation encountered an error. Manual review recommended."
FALLBACK_ASSESSMENT = "Technical issue occurred during feedback generation. Manual review of transcript recommended."


@dataclass(frozen=True)
class CategoryScore:
    name: str
    score: int
    comment: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "score": self.score, "comment": self.comment}


@dataclass(frozen=True)
class InterviewFeedback:
    """Post-interview score of a whole transcript, 0-100 per category."""
    total_score: int
    category_scores: tuple[CategoryScore, ...]
    strengths: tuple[str, ...] = ()
    areas_for_improvement: tuple[str, ...] = ()
    final_assessment: str = ""

    def to_dict(self) -> dict:
        return {
            "totalScore": self.total_score,
            "categoryScores": [item.to_dict() for item in self.category_scores],
            "strengths": list(self.strengths),
            "areasForImprovement": list(self.areas_for_improvement),
            "finalAssessment": self.final_assessment,
        }


def fallback_feedback() -> InterviewFeedback:
    return InterviewFeedback(
        total_score=FALLBACK_SCORE,
        category_scores=tuple(
            CategoryScore(name=name, score=FALLBACK_SCORE, comment=FALLBACK_COMMENT)
            for name, _ in FEEDBACK_CATEGORIES
        ),
        strengths=("Interview completed",),
        areas_for_improvement=("Feedback generation needs manual review",),
        final_assessment=FALLBACK_ASSESSMENT,
    )


def _percent(value) -> int:
    if isinstance(value, bool):
        raise GenerationParseError("boolean is not a score")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise GenerationParseError(f"non-numeric score: {value!r}") from exc
    if number != number:
        raise GenerationParseError("NaN score")
    return max(0, min(100, int(number + 0.5)))


def _strings(value) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(item).strip() for item in value if isinstance(item, str) and item.strip())


def parse_feedback(raw_text: str) -> InterviewFeedback:
    data = extract_json_object(raw_text)
    if "totalScore" not in data or not isinstance(data.get("categoryScores"), list):
        raise GenerationParseError("feedback needs totalScore and a categoryScores list")

    categories = []
    for item in data["categoryScores"]:
        if not isinstance(item, dict) or not str(item.get("name") or "").strip():
            raise GenerationParseError("category entry without a name")
        categories.append(CategoryScore(
            name=str(item["name"]).strip(),
            score=_percent(item.get("score")),
            comment=str(item.get("comment") or "").strip(),
        ))
    if not categories:
        raise GenerationParseError("no category scores")

    return InterviewFeedback(
        total_score=_percent(data["totalScore"]),
        category_scores=tuple(categories),
        strengths=_strings(data.get("strengths")),
        areas_for_improvement=_strings(data.get("areasForImprovement")),
        final_assessment=str(data.get("finalAssessment") or "").strip(),
    )


class FeedbackGenerator:
    def __init__(self, generator: TextGenerator):
        self.generator = generator

    async def generate(
        self,
        transcript: list[dict],
        role: str,
        tech_stack,
        summary: str = "",
    ) -> InterviewFeedback:
        lines = [
            {"role": str(line.get("role") or "").strip(), "content": str(line.get("content") or "").strip()}
            for line in (transcript or [])
            if isinstance(line, dict)
        ]
        lines = [line for line in lines if line["content"]]
        if not lines:
            raise ValidationError("transcript must contain at least one non-empty line")

        prompt = build_feedback_prompt({
            "role": role,
            "tech_stack": list(tech_stack or []),
            "summary": summary,
            "transcript": lines,
        })
        try:
            feedback = parse_feedback(await self.generator.generate(prompt))
            increment_metric("feedback_generated")
            return feedback
        except GenerationParseError as exc:
            logger.warning("feedback parse failed, using fallback | err=%s", exc)
        except Exception as exc:
            logger.warning("feedback generation failed, using fallback | err=%s", exc)

        increment_metric("generation_fallbacks")
        return fallback_feedback()
