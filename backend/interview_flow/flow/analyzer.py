import logging
from typing import Sequence

from interview_flow.ai_reasoning.generator import TextGenerator
from interview_flow.ai_reasoning.json_utils import extract_json_object
from interview_flow.ai_reasoning.prompts.analysis_prompt import build_analysis_prompt
from interview_flow.core.config import MAX_DIFFICULTY, MIN_DIFFICULTY
from interview_flow.core.errors import GenerationParseError, ValidationError
from interview_flow.flow.models import ResponseAnalysis
from interview_flow.system_metrics import increment_metric

logger = logging.getLogger("interview_flow.flow.analyzer")

FALLBACK_REASONING = "Unable to analyze response properly"
NEUTRAL_SCORE = 5
MAX_KEYWORDS = 5

_SCORE_FIELDS = {
    "confidence": "confidence",
    "technicalAccuracy": "technical_accuracy",
    "completeness": "completeness",
    "overallScore": "overall_score",
    "suggestedNextDifficulty": "suggested_next_difficulty",
}


def fallback_analysis(current_difficulty: int) -> ResponseAnalysis:
    """Neutral analysis used whenever the generation service lets us down."""
    return ResponseAnalysis(
        mvp_keywords=(),
        confidence=NEUTRAL_SCORE,
        technical_accuracy=NEUTRAL_SCORE,
        completeness=NEUTRAL_SCORE,
        overall_score=NEUTRAL_SCORE,
        suggested_next_difficulty=int(current_difficulty),
        reasoning=FALLBACK_REASONING,
    )


def _coerce_score(value) -> int:
    if isinstance(value, bool):
        raise GenerationParseError("boolean is not a score")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise GenerationParseError(f"non-numeric score: {value!r}") from exc
    if number != number:
        raise GenerationParseError("NaN score")
    return max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, int(round(number))))


def _coerce_keywords(value) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise GenerationParseError("mvpKeywords must be a list")
    keywords: list[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        keyword = item.strip()
        if keyword and keyword not in keywords:
            keywords.append(keyword)
    return tuple(keywords[:MAX_KEYWORDS])


def parse_analysis(raw_text: str) -> ResponseAnalysis:
    data = extract_json_object(raw_text)

    missing = [name for name in ("mvpKeywords", *_SCORE_FIELDS) if name not in data]
    if missing:
        raise GenerationParseError(f"missing fields: {', '.join(missing)}")

    scores = {attr: _coerce_score(data[name]) for name, attr in _SCORE_FIELDS.items()}
    return ResponseAnalysis(
        mvp_keywords=_coerce_keywords(data["mvpKeywords"]),
        reasoning=str(data.get("reasoning") or "").strip(),
        **scores,
    )


class ResponseAnalyzer:
    def __init__(self, generator: TextGenerator):
        self.generator = generator

    async def analyze(
        self,
        answer_text: str,
        question_text: str,
        role: str,
        tech_stack: Sequence[str],
        current_difficulty: int,
    ) -> ResponseAnalysis:
        if not str(answer_text or "").strip():
            raise ValidationError("userResponse must be a non-empty string")
        if not str(question_text or "").strip():
            raise ValidationError("currentQuestion must be a non-empty string")
        if isinstance(current_difficulty, bool) or not isinstance(current_difficulty, int):
            raise ValidationError("currentDifficulty must be an integer")
        if not MIN_DIFFICULTY <= current_difficulty <= MAX_DIFFICULTY:
            raise ValidationError("currentDifficulty must be between 1 and 10")

        prompt = build_analysis_prompt({
            "role": role,
            "tech_stack": list(tech_stack or []),
            "current_difficulty": current_difficulty,
            "question": question_text,
            "answer": answer_text,
        })

        try:
            raw = await self.generator.generate(prompt)
            return parse_analysis(raw)
        except GenerationParseError as exc:
            logger.warning("analysis parse failed, using neutral fallback | err=%s", exc)
        except Exception as exc:
            logger.warning("analysis generation failed, using neutral fallback | err=%s", exc)

        increment_metric("generation_fallbacks")
        return fallback_analysis(current_difficulty)
