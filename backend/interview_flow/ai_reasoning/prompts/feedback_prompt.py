FEEDBACK_CATEGORIES = (
    ("Communication Skills", "Clarity, articulation, structured responses."),
    ("Technical Knowledge", "Understanding of key concepts for the role."),
    ("Problem Solving", "Ability to analyze problems and propose solutions."),
    ("Cultural Fit", "Alignment with company values and job role."),
    ("Confidence and Clarity", "Confidence in responses, engagement, and clarity."),
)


def _format_transcript(lines: list[dict]) -> str:
    return "\n".join(f"- {line.get('role')}: {line.get('content')}" for line in lines)


def build_feedback_prompt(context: dict) -> str:
    categories = "\n".join(f"- {name}: {description}" for name, description in FEEDBACK_CATEGORIES)
    return f"""
You are evaluating a finished mock interview. Be thorough and do not be lenient:
point out mistakes and areas for improvement.

Interview context:
- Role: {context.get("role")}
- Tech stack: {", ".join(context.get("tech_stack") or []) or "N/A"}

Adaptive flow summary:
{context.get("summary") or "(not available)"}

Transcript:
{_format_transcript(context.get("transcript") or [])}

Score the candidate from 0 to 100 in exactly these categories:
{categories}

Return ONLY a JSON object with exactly this structure:
{{
  "totalScore": 75,
  "categoryScores": [
    {{"name": "Communication Skills", "score": 80, "comment": "Clear communication"}}
  ],
  "strengths": ["Strong communication"],
  "areasForImprovement": ["More specific examples"],
  "finalAssessment": "One or two sentences."
}}
""".strip()
