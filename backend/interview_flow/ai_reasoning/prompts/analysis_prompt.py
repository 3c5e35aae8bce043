def build_analysis_prompt(context: dict) -> str:
    return f"""
Analyze this interview response for a {context.get("role")} position.

QUESTION: "{context.get("question")}"
CANDIDATE RESPONSE: "{context.get("answer")}"

Context:
- Role: {context.get("role")}
- Tech stack: {", ".join(context.get("tech_stack") or [])}
- Current difficulty: {context.get("current_difficulty")}/10

Return ONLY a JSON object with exactly this structure:
{{
  "mvpKeywords": ["keyword1", "keyword2", "keyword3"],
  "confidence": 7,
  "technicalAccuracy": 8,
  "completeness": 6,
  "overallScore": 7,
  "suggestedNextDifficulty": 8,
  "reasoning": "Brief explanation of the assessment"
}}

Scoring rules:
- mvpKeywords: 3-5 key technical terms, skills, or concepts the candidate mentioned
- confidence: how confident the candidate sounds (1-10)
- technicalAccuracy: correctness of technical content (1-10)
- completeness: how thoroughly the question was answered (1-10)
- overallScore: overall answer quality (1-10)
- suggestedNextDifficulty: recommended difficulty for the next question (1-10)
- reasoning: 1-2 sentences explaining the scores
""".strip()
