"""Prompt text for the adaptive practice-text generator."""

SYSTEM_PROMPT = (
    "You are a typing practice text generator. Generate text based on the "
    "user's skill level and chosen mode. Reply with the practice text only: "
    "no title, no explanation, no markdown fences."
)

INSTRUCTIONS = """Instructions:
- For general mode, generate realistic text snippets.
- For code mode, generate code snippets in the specified language that follow standard syntax.
- Adapt the complexity of the text to the user's skill level. A higher skill level should result in more complex and challenging text.
- If the user provided mistakes from the previous text generation, generate new text that exercises those characters."""


def build_user_prompt(payload: dict) -> str:
    lines = [f"Mode: {payload['mode']}"]
    if payload.get("language"):
        lines.append(f"Language: {payload['language']}")
    lines.append(f"Skill Level: {payload['skillLevel']}")
    if payload.get("previousMistakes"):
        lines.append(f"Previous Mistakes: {payload['previousMistakes']}")
    lines.append("")
    lines.append(INSTRUCTIONS)
    lines.append("")
    lines.append("Text:")
    return "\n".join(lines)


def build_messages(payload: dict) -> list[dict]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(payload)},
    ]
