"""Review routes: user submission plus admin question management and stats."""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from careerai.database import get_db
from careerai.dependencies import get_current_user_id
from careerai.schemas.common import DeleteResponse
from careerai.schemas.review import (
    ReviewSubmit, ReviewSubmitResponse, ReviewResponse,
    ReviewQuestionCreate, ReviewQuestionUpdate, ReviewQuestionResponse, QuestionStats,
)
from careerai.services import review_service
from careerai.services.review_aggregator import get_review_stats

router = APIRouter(prefix="/api/reviews", tags=["reviews"])
admin_router = APIRouter(prefix="/api/admin", tags=["reviews"])


@router.get("/questions", response_model=list[ReviewQuestionResponse])
async def list_active_questions(db: AsyncSession = Depends(get_db)):
    """Active questions in display order."""
    return await review_service.list_questions(db, active_only=True)


@router.post("", response_model=ReviewSubmitResponse, status_code=201)
async def submit_review(
    body: ReviewSubmit,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Submit a review. The whole batch is rejected if any answer is invalid."""
    return await review_service.submit_review(db, user_id, body.answers, body.comment)


# Admin endpoints
@admin_router.get("/reviews", response_model=list[ReviewResponse])
async def list_reviews(
    user_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """All reviews with answers, newest first."""
    return await review_service.list_reviews(db, user_id)


@admin_router.get("/reviews/stats", response_model=list[QuestionStats])
async def review_stats(db: AsyncSession = Depends(get_db)):
    """Per-question answer distribution."""
    return await get_review_stats(db)


@admin_router.get("/review-questions", response_model=list[ReviewQuestionResponse])
async def list_all_questions(db: AsyncSession = Depends(get_db)):
    return await review_service.list_questions(db)


@admin_router.post("/review-questions", response_model=ReviewQuestionResponse, status_code=201)
async def create_question(body: ReviewQuestionCreate, db: AsyncSession = Depends(get_db)):
    return await review_service.create_question(db, body.model_dump())


@admin_router.put("/review-questions/{question_id}", response_model=ReviewQuestionResponse)
async def update_question(
    question_id: int,
    body: ReviewQuestionUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a question. Only provided fields are updated."""
    return await review_service.update_question(db, question_id, body.model_dump(exclude_unset=True))


@admin_router.delete("/review-questions/{question_id}", response_model=DeleteResponse)
async def delete_question(question_id: int, db: AsyncSession = Depends(get_db)):
    await review_service.delete_question(db, question_id)
    return {"deleted": True, "id": question_id}
