"""Seed the default chat prompt template on startup.

Idempotent: a category that already has any template is left alone, so an
operator's edits and deactivations survive restarts.
"""
import logging
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from careerai.models.prompt import PromptTemplate

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# CHAT PROMPT
# ═══════════════════════════════════════════════════════════════════════════════

DEFAULT_PROMPT_TEMPLATES = [
    {
        "title": "CareerAI career coach",
        "category": "chat",
        "is_active": True,
        "body": """You are CareerAI, a friendly career coach and mentor.
Your tone should always be like a supportive friend who genuinely cares.

Your task:
1. Continue the conversation from where it left off.
2. This is the old chat between you and the user:
{{history}}

3. This is the latest message from the user:
{{latest_message}}

{{file_context}}

Guidelines:
- Understand the user's confusion, interests, skills, goals, and preferences.
- If the user is confused, help them explore their real interests.
- If the user has clarity, guide them on skill enhancement, market needs, and relevant courses.
- Suggest jobs that match their skills and preferences.
- Keep replies short, natural, and engaging, not like a lecture.
- If the user asks for a job, provide a detailed JD with required skills and experience.
- If the user asks for a course or a project idea, recommend one with a link.
- When the user asks about previously uploaded files, reference them by name.
- For resumes, offer feedback on format, content, and suggestions for improvement.

Ask one question at a time.""",
    },
]


# ═══════════════════════════════════════════════════════════════════════════════
# SEED FUNCTION
# ═══════════════════════════════════════════════════════════════════════════════

async def _seed_prompt_templates(session: AsyncSession) -> None:
    """Insert the default template for each category that has none."""
    rows = await session.execute(
        select(PromptTemplate.category, func.count(PromptTemplate.id)).group_by(PromptTemplate.category)
    )
    existing_counts: dict[str, int] = {row[0]: row[1] for row in rows}

    missing = [t for t in DEFAULT_PROMPT_TEMPLATES if not existing_counts.get(t["category"])]
    if not missing:
        logger.info("Prompt templates already present, nothing to seed")
        return

    for t in missing:
        session.add(PromptTemplate(**t))
    await session.flush()
    logger.info("Seeded %d default prompt templates", len(missing))


async def seed_all_defaults(session: AsyncSession) -> None:
    """Idempotent entry point: seed all default data."""
    logger.info("Checking seed defaults...")
    await _seed_prompt_templates(session)
    await session.commit()
    logger.info("Seed defaults check complete")
