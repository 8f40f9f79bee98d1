"""Fill a prompt template's named slots with conversation context.

Template bodies are opaque operator text with up to three slots:
``{{history}}``, ``{{latest_message}}`` and ``{{file_context}}``. A slot the
template does not mention is appended as its own section, and an empty
section is dropped along with its heading.
"""
import re

SLOT_HISTORY = "{{history}}"
SLOT_LATEST_MESSAGE = "{{latest_message}}"
SLOT_FILE_CONTEXT = "{{file_context}}"

SECTION_HEADINGS = {
    SLOT_HISTORY: "This is the conversation so far:",
    SLOT_LATEST_MESSAGE: "This is the latest message from the user:",
    SLOT_FILE_CONTEXT: "Files shared by the user:",
}

_SLOT_PATTERN = re.compile(r"\{\{(history|latest_message|file_context)\}\}")
_FENCE = "```"
_FENCE_REPLACEMENT = "'''"
_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")


def sanitize(text: str) -> str:
    """Strip NUL bytes, neutralize code fences and normalize line endings."""
    if not text:
        return ""
    text = text.replace("\x00", "")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text.replace(_FENCE, _FENCE_REPLACEMENT)


def render_prompt(template_body: str, history: str, latest_message: str, file_context: str = "") -> str:
    """Pure rendering of the final instruction text sent to the model."""
    values = {
        SLOT_HISTORY: sanitize(history),
        SLOT_LATEST_MESSAGE: sanitize(latest_message),
        SLOT_FILE_CONTEXT: sanitize(file_context),
    }

    body = template_body.replace("\r\n", "\n").replace("\r", "\n")
    present = {m.group(0) for m in _SLOT_PATTERN.finditer(body)}
    # Single pass, so slot-like text inside user content is never re-expanded.
    body = _SLOT_PATTERN.sub(lambda m: values[m.group(0)], body)

    sections = [body.strip()]
    for slot, value in values.items():
        if slot not in present and value:
            sections.append(f"{SECTION_HEADINGS[slot]}\n{value}")

    rendered = "\n\n".join(s for s in sections if s)
    return _EXTRA_BLANK_LINES.sub("\n\n", rendered)
