def _format_history(history: list[dict]) -> str:
    if not history:
        return "- (none yet)"
    return "\n".join(
        f"- {item.get('question')} (Difficulty: {item.get('difficulty')})"
        for item in history
    )


def build_next_question_prompt(context: dict) -> str:
    analysis = context.get("analysis") or {}
    tech_stack = context.get("tech_stack") or []
    difficulty = context.get("current_difficulty")
    return f"""
Generate the next interview question.

ROLE: {context.get("role")}
TECH STACK: {", ".join(tech_stack)}
CURRENT DIFFICULTY: {difficulty}/10
QUESTIONS ASKED: {context.get("questions_asked")}/{context.get("total_questions")}

PREVIOUS QUESTION: "{context.get("current_question")}"
CANDIDATE RESPONSE: "{context.get("user_response")}"
KEYWORDS SO FAR: {", ".join(context.get("mvp_keywords") or [])}

RESPONSE ANALYSIS:
- Overall score: {analysis.get("overallScore")}/10
- Technical accuracy: {analysis.get("technicalAccuracy")}/10
- Confidence: {analysis.get("confidence")}/10
- Reasoning: {analysis.get("reasoning")}

QUESTION HISTORY:
{_format_history(context.get("question_history") or [])}

Rules:
- Ask ONE follow-up question that builds on the response.
- Keep the difficulty at {difficulty}/10.
- Work in some of these keywords: {", ".join(analysis.get("mvpKeywords") or [])}
- Stay relevant to the {context.get("role")} role and the {"/".join(tech_stack)} stack.
- Conversational and suitable for voice.
- Do NOT repeat any question from the history.
- If they struggled, ask a clarifying or slightly easier related question.
- If they did well, go deeper or move to a related concept.

Return ONLY the question as plain text (no JSON, no quotes).
""".strip()
