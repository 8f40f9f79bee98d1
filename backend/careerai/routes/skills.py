"""Skill assessment routes."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from careerai.database import get_db
from careerai.dependencies import get_current_user_id, get_gateway
from careerai.schemas.skill import SkillQuestionsResponse, SkillScoreRequest, SkillScoreResponse
from careerai.services.llm_gateway import BaseCompletionGateway
from careerai.services.skill_assessment import generate_questions, score_answers

router = APIRouter(prefix="/api/skill-score", tags=["skills"])


@router.get("/{skill_id}/questions", response_model=SkillQuestionsResponse)
async def get_skill_questions(
    skill_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    gateway: BaseCompletionGateway = Depends(get_gateway),
):
    """Ten assessment questions for one of the user's skills."""
    return await generate_questions(db, gateway, user_id, skill_id)


@router.post("/{skill_id}/score", response_model=SkillScoreResponse)
async def score_skill(
    skill_id: int,
    body: SkillScoreRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    gateway: BaseCompletionGateway = Depends(get_gateway),
):
    """Evaluate the answers and store the user's new skill score."""
    return await score_answers(db, gateway, user_id, skill_id, body.answers)
