def build_initial_questions_prompt(context: dict) -> str:
    return f"""
Generate exactly 3 opening interview questions for a {context.get("role")} position.

Tech stack: {", ".join(context.get("tech_stack") or [])}
Difficulty: {context.get("difficulty")}/10 (1 is beginner, 10 is expert)

Rules:
- Question 1 is specific to the role.
- Question 2 is technical and about the tech stack.
- Question 3 is a general problem-solving question.
- Questions will be spoken aloud: no special characters, no markdown.
- Match the difficulty level.
- Keep each question concise and clear.

Return ONLY a JSON array: ["Question 1", "Question 2", "Question 3"]
""".strip()
