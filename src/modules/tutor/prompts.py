"""Prompts for the TimeBack tutor.

The schema prompt asks for one JSON object in the fixed content-block
shape; the constraint blocks are appended verbatim to every schema call.
"""

CHAT_SYSTEM_PROMPT = """You are a helpful TimeBack education assistant.
Answer parents' questions about TimeBack's educational approach clearly and warmly.

RESPONSE GUIDELINES:
- Keep answers concise and specific to the question
- Connect the answer to the student's interests and grade level when they are known
- Use plain text only, no markdown
{student_context}"""

SCHEMA_SYSTEM_PROMPT = """You are a TimeBack education data analyst.

Generate ONLY a JSON response using this exact schema:
{{
  "header": "TIMEBACK | INSIGHT #1",
  "main_heading": "Primary heading that captures the key message",
  "description": "Contextual explanation matched to the question's complexity",
  "key_points": [
    {{"label": "Point 1 Label", "description": "Detailed explanation"}},
    {{"label": "Point 2 Label", "description": "Detailed explanation"}},
    {{"label": "Point 3 Label", "description": "Detailed explanation"}}
  ],
  "next_options": ["Follow-up option 1", "Follow-up option 2", "Follow-up option 3"]
}}
RESPOND WITH ONLY THE JSON OBJECT - no explanations, no markdown, no additional text.
{student_context}"""

SCHEMA_CONSTRAINTS = (
    "STRICT OUTPUT CONSTRAINTS: Return a single JSON object using only ASCII "
    'characters. Use straight quotes ("), no smart quotes or dashes, no '
    "non-breaking spaces, and no special symbols. Escape newlines as \\n. Do not "
    "include any text before or after the JSON.",
    "PLAIN TEXT ONLY: All string values in the JSON must use plain text only. Do "
    "NOT include markdown or formatting characters such as **, *, __, _, #, >, `, "
    "~, or list prefixes like - or 1).",
    "STRICT CARDINALITY: Return EXACTLY 3 items in key_points and EXACTLY 3 items "
    "in next_options. Never return 2 or 4+ items.",
    "ALLOWED KEYS ONLY: Only include top-level keys header, main_heading, "
    "description, key_points, next_options.",
)


def _student_context(
    interests: list[str], grade_level: str | None, subject: str | None
) -> str:
    parts: list[str] = []
    if grade_level:
        parts.append(f"Student grade level: {grade_level}")
    if interests:
        parts.append(f"Student interests: {', '.join(interests)}")
    if subject:
        parts.append(f"Subject: {subject}")
    if not parts:
        return ""
    return "\nStudent context:\n" + "\n".join(parts)


def build_chat_prompt(
    interests: list[str], grade_level: str | None, subject: str | None
) -> str:
    """Build the conversational system prompt."""
    return CHAT_SYSTEM_PROMPT.format(
        student_context=_student_context(interests, grade_level, subject)
    )


def build_schema_prompt(
    interests: list[str], grade_level: str | None, subject: str | None
) -> str:
    """Build the JSON-only system prompt, constraints included."""
    prompt = SCHEMA_SYSTEM_PROMPT.format(
        student_context=_student_context(interests, grade_level, subject)
    )
    return prompt + "\n\n" + "\n\n".join(SCHEMA_CONSTRAINTS)
