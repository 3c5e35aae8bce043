import json
import os
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("USE_REDIS_FLOW_STATE", "false")


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("QA_MODE", "true")
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")

    from interview_flow.system_metrics import reset_metrics

    reset_metrics()
    yield
    reset_metrics()


def analysis_json(overall: int = 5, suggested: int = 5, keywords=None, **extra) -> str:
    payload = {
        "mvpKeywords": list(keywords if keywords is not None else ["python"]),
        "confidence": extra.get("confidence", overall),
        "technicalAccuracy": extra.get("technicalAccuracy", overall),
        "completeness": extra.get("completeness", overall),
        "overallScore": overall,
        "suggestedNextDifficulty": suggested,
        "reasoning": extra.get("reasoning", "scripted"),
    }
    return json.dumps(payload)


def feedback_json(total: int = 72, **extra) -> str:
    payload = {
        "totalScore": total,
        "categoryScores": [
            {"name": "Communication Skills", "score": total, "comment": "Clear answers"},
            {"name": "Technical Knowledge", "score": total, "comment": "Solid basics"},
        ],
        "strengths": extra.get("strengths", ["Structured answers"]),
        "areasForImprovement": extra.get("areasForImprovement", ["More concrete examples"]),
        "finalAssessment": extra.get("finalAssessment", "Promising candidate."),
    }
    return json.dumps(payload)


class ScriptedGenerator:
    """Answers each prompt kind from its own queue; the last entry repeats."""

    def __init__(self, initial=None, analyses=None, questions=None, feedback=None):
        self.queues = {
            "initial": list(initial or [json.dumps(["Q1 role?", "Q2 tech?", "Q3 solve?"])]),
            "analysis": list(analyses or [analysis_json()]),
            "question": list(questions or ["What would you change next time?"]),
            "feedback": list(feedback or [feedback_json()]),
        }
        self.prompts: list[str] = []

    @staticmethod
    def kind(prompt: str) -> str:
        if "opening interview questions" in prompt:
            return "initial"
        if "Analyze this interview response" in prompt:
            return "analysis"
        if "Score the candidate from 0 to 100" in prompt:
            return "feedback"
        return "question"

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        queue = self.queues[self.kind(prompt)]
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def count(self, kind: str) -> int:
        return sum(1 for prompt in self.prompts if self.kind(prompt) == kind)


@pytest.fixture
def scripted_generator():
    return ScriptedGenerator


@pytest.fixture
def make_analysis_json():
    return analysis_json


@pytest.fixture
def make_feedback_json():
    return feedback_json
