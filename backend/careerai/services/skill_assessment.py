"""Skill self-assessment: generate ten questions, then score the answers.

Both steps degrade gracefully. Question generation falls back to a fixed
list and scoring to a neutral score when the completion service fails; those
are the only places a GatewayError is absorbed.
"""
import json
import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from careerai.exceptions import GatewayError, NotFoundError, PersistenceError, ReviewValidationError
from careerai.models.skill import UserSkill
from careerai.services.llm_gateway import BaseCompletionGateway

logger = logging.getLogger(__name__)

QUESTION_COUNT = 10

DEFAULT_QUESTIONS = [
    "Describe your recent project using this skill. What was your role?",
    "How comfortable are you with core concepts of this skill?",
    "What frameworks/tools do you use with this skill?",
    "Share a challenging bug or issue you solved recently.",
    "How do you approach learning and staying updated in this skill?",
    "Rate your proficiency from 1 (beginner) to 10 (expert) and why.",
    "What best practices do you follow when using this skill?",
    "How do you handle performance or optimization concerns?",
    "What areas do you feel you need improvement in?",
    "Give an example where this skill impacted business outcomes.",
]

HEURISTIC_FEEDBACK = "Evaluation completed. Improve core concepts, tooling depth, and best practices."
FALLBACK_SCORE = 50
FALLBACK_FEEDBACK = "Evaluation fallback. Consider strengthening fundamentals and practical problem solving."

QUESTIONS_PROMPT = """You are a skill evaluator. Generate {count} concise, clear, practical questions to assess the user's proficiency in {skill}.
Focus on real-world usage, core concepts, problem solving, best practices, and impact.
Return questions as a plain list separated by newlines, no numbering or extra text."""

SCORING_PROMPT = """You are a rigorous evaluator. The user answered {count} questions about {skill}.
Assess proficiency from 0 to 100 based on clarity, practical experience, understanding of core concepts, problem-solving, best practices, and impact.
Return a JSON object ONLY with keys: score (number 0-100) and feedback (short string with strengths and improvements).

Answers:
{answers}"""

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_SELF_RATING = re.compile(r"\b(\d{1,2})\b")


async def get_user_skill(db: AsyncSession, user_id: int, skill_id: int) -> UserSkill:
    result = await db.execute(
        select(UserSkill)
        .where(UserSkill.user_id == user_id, UserSkill.skill_id == skill_id)
        .options(selectinload(UserSkill.skill))
    )
    user_skill = result.scalars().first()
    if user_skill is None:
        raise NotFoundError("Skill for user", skill_id)
    return user_skill


def _skill_name(user_skill: UserSkill) -> str:
    return user_skill.skill.name if user_skill.skill else "the skill"


async def generate_questions(db: AsyncSession, gateway: BaseCompletionGateway, user_id: int, skill_id: int) -> dict:
    user_skill = await get_user_skill(db, user_id, skill_id)
    name = _skill_name(user_skill)

    questions = DEFAULT_QUESTIONS
    try:
        text = await gateway.complete(QUESTIONS_PROMPT.format(count=QUESTION_COUNT, skill=name))
        lines = [line.strip() for line in text.split("\n") if line.strip()]
        if len(lines) >= QUESTION_COUNT:
            questions = lines[:QUESTION_COUNT]
        else:
            logger.warning(f"Only {len(lines)} questions generated for '{name}', using defaults")
    except GatewayError as e:
        logger.warning(f"Question generation failed for '{name}', using defaults: {e}")

    return {"skill": {"id": user_skill.skill_id, "name": name}, "questions": list(questions)}


def parse_score(text: str, answers: list[str]) -> tuple[int, str]:
    """Score and feedback from the model reply, or a self-rating heuristic without JSON."""
    match = _JSON_OBJECT.search(text)
    if match:
        try:
            parsed = json.loads(match.group(0))
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            try:
                score = float(parsed.get("score") or 0)
            except (TypeError, ValueError):
                score = 0
            return int(round(max(0, min(100, score)))), str(parsed.get("feedback") or "")

    ratings = [int(m.group(1)) for m in (_SELF_RATING.search(a) for a in answers) if m]
    average = sum(ratings) / len(ratings) if ratings else 5
    return round(average / 10 * 100), HEURISTIC_FEEDBACK


async def score_answers(
    db: AsyncSession, gateway: BaseCompletionGateway, user_id: int, skill_id: int, answers: list[str],
) -> dict:
    """Evaluate ten answers and store the result as the user's skill score."""
    if not isinstance(answers, list) or len(answers) < QUESTION_COUNT:
        raise ReviewValidationError(None, f"Provide {QUESTION_COUNT} answers to evaluate.")

    user_skill = await get_user_skill(db, user_id, skill_id)
    name = _skill_name(user_skill)
    numbered = "\n".join(f"{i}. {a}" for i, a in enumerate(answers, start=1))

    try:
        text = await gateway.complete(SCORING_PROMPT.format(count=QUESTION_COUNT, skill=name, answers=numbered))
        score, feedback = parse_score(text, answers)
    except GatewayError as e:
        logger.warning(f"Scoring failed for '{name}', using fallback score: {e}")
        score, feedback = FALLBACK_SCORE, FALLBACK_FEEDBACK

    user_skill.skill_score = score
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError("Failed to store skill score") from e

    logger.info(f"User {user_id} scored {score}/100 on skill {skill_id}")
    return {"score": score, "feedback": feedback}
