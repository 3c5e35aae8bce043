from typing import Optional

from fastapi import APIRouter, Depends, Query

from interview_flow.core.config import DEFAULT_TOTAL_QUESTIONS
from interview_flow.core.errors import ValidationError
from interview_flow.dependencies import get_orchestrator
from interview_flow.flow.models import QuestionGenerationRequest
from interview_flow.flow.orchestrator import FlowOrchestrator
from interview_flow.schemas import (
    AnalyzeResponseRequest,
    FeedbackRequest,
    InitializeFlowRequest,
    NextQuestionRequest,
)

router = APIRouter(prefix="/api/adaptive-flow")


def _require_session_id(session_id: Optional[str]) -> str:
    value = str(session_id or "").strip()
    if not value:
        raise ValidationError("sessionId is required")
    return value


@router.post("/initialize")
async def initialize_flow(
    payload: InitializeFlowRequest,
    orchestrator: FlowOrchestrator = Depends(get_orchestrator),
):
    total_questions = payload.total_questions if payload.total_questions is not None else DEFAULT_TOTAL_QUESTIONS
    state, questions = await orchestrator.start(
        session_id=payload.session_id,
        role=payload.role,
        tech_stack=payload.tech_stack,
        base_difficulty=payload.base_difficulty,
        total_questions=total_questions,
    )
    return {
        "success": True,
        "flowState": state.to_dict(),
        "initialQuestions": questions,
        "message": "Adaptive interview flow initialized",
    }


@router.post("/next-question")
async def next_question(
    payload: NextQuestionRequest,
    orchestrator: FlowOrchestrator = Depends(get_orchestrator),
):
    state = await orchestrator.require_state(payload.session_id)
    if not orchestrator.should_continue(state):
        return {
            "success": True,
            "shouldContinue": False,
            "summary": orchestrator.summarize(state),
        }

    question = await orchestrator.generate_next_question(
        QuestionGenerationRequest(
            session_id=payload.session_id,
            user_response=payload.user_response,
            current_question=payload.current_question,
            flow_state=state,
        )
    )
    updated = await orchestrator.require_state(payload.session_id)
    should_continue = orchestrator.should_continue(updated)

    response = {
        "success": True,
        "shouldContinue": should_continue,
        "nextQuestion": question,
        "flowState": updated.to_dict(),
        "questionsRemaining": orchestrator.questions_remaining(updated),
    }
    if not should_continue:
        response["summary"] = orchestrator.summarize(updated)
    return response


@router.get("/status")
async def flow_status(
    session_id: Optional[str] = Query(default=None, alias="sessionId"),
    orchestrator: FlowOrchestrator = Depends(get_orchestrator),
):
    state = await orchestrator.require_state(_require_session_id(session_id))
    return {
        "success": True,
        "flowState": state.to_dict(),
        "shouldContinue": orchestrator.should_continue(state),
        "summary": orchestrator.summarize(state),
    }


@router.delete("/status")
async def delete_flow_status(
    session_id: Optional[str] = Query(default=None, alias="sessionId"),
    orchestrator: FlowOrchestrator = Depends(get_orchestrator),
):
    session_id = _require_session_id(session_id)
    removed = await orchestrator.delete_state(session_id)
    return {
        "success": True,
        "removed": removed,
        "message": "Flow state cleared" if removed else "No flow state stored for session",
    }


@router.post("/analyze-response")
async def analyze_response(
    payload: AnalyzeResponseRequest,
    orchestrator: FlowOrchestrator = Depends(get_orchestrator),
):
    analysis = await orchestrator.analyzer.analyze(
        payload.user_response,
        payload.current_question,
        payload.role,
        payload.tech_stack,
        payload.current_difficulty,
    )
    return {
        "success": True,
        "analysis": analysis.to_dict(),
    }


@router.post("/feedback")
async def interview_feedback(
    payload: FeedbackRequest,
    orchestrator: FlowOrchestrator = Depends(get_orchestrator),
):
    state = await orchestrator.require_state(payload.session_id)
    summary = orchestrator.summarize(state)
    feedback = await orchestrator.feedback.generate(
        [line.model_dump() for line in payload.transcript],
        state.role,
        state.tech_stack,
        summary,
    )
    return {
        "success": True,
        "feedback": feedback.to_dict(),
        "summary": summary,
    }
