"""Review submission and review question administration."""
import logging
from typing import Optional, Sequence

from sqlalchemy import select, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from careerai.exceptions import NotFoundError, PersistenceError, ReviewValidationError
from careerai.models.review import Review, ReviewAnswer, ReviewQuestion, QUESTION_KINDS, CHOICE_KINDS
from careerai.services.review_validator import load_and_validate

logger = logging.getLogger(__name__)

QUESTION_FIELDS = ("text", "is_active", "display_order", "kind", "allow_multiple", "options", "min_value", "max_value")


async def submit_review(
    db: AsyncSession, user_id: int, answers: Sequence, comment: Optional[str] = None,
) -> dict:
    """Validate the whole batch, then write the review and its answers together."""
    typed = await load_and_validate(db, answers)

    review = Review(
        user_id=user_id,
        comment=(comment or "").strip() or None,
        answers=[ReviewAnswer(question_id=a.question_id, answer=a.payload()) for a in typed],
    )
    db.add(review)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to store review for user %s: %s", user_id, e)
        raise PersistenceError("Failed to store review") from e

    logger.info("Stored review %s with %d answers for user %s", review.id, len(typed), user_id)
    return {"review_id": review.id}


async def list_reviews(db: AsyncSession, user_id: Optional[int] = None) -> list[Review]:
    query = select(Review).options(selectinload(Review.answers))
    if user_id is not None:
        query = query.where(Review.user_id == user_id)
    result = await db.execute(query.order_by(desc(Review.id)))
    return list(result.scalars().all())


async def list_questions(db: AsyncSession, active_only: bool = False) -> list[ReviewQuestion]:
    query = select(ReviewQuestion)
    if active_only:
        query = query.where(ReviewQuestion.is_active.is_(True))
    result = await db.execute(query.order_by(ReviewQuestion.display_order, ReviewQuestion.id))
    return list(result.scalars().all())


async def get_question(db: AsyncSession, question_id: int) -> ReviewQuestion:
    question = await db.get(ReviewQuestion, question_id)
    if question is None:
        raise NotFoundError("Review question", question_id)
    return question


def normalize_question(fields: dict, question_id: Optional[int] = None) -> dict:
    """Check a question definition and return it with kind-specific fields cleaned.

    Choice kinds need at least one option; rating keeps its bounds and every
    other kind drops them.
    """
    fields = dict(fields)
    text = (fields.get("text") or "").strip()
    if not text:
        raise ReviewValidationError(question_id, "Question text is required")
    fields["text"] = text

    kind = fields.get("kind") or "likert"
    if kind not in QUESTION_KINDS:
        raise ReviewValidationError(question_id, f"Invalid question type '{kind}'")
    fields["kind"] = kind

    if kind in CHOICE_KINDS:
        options = [str(o).strip() for o in (fields.get("options") or []) if str(o).strip()]
        if not options:
            raise ReviewValidationError(question_id, "Options are required for choice questions")
        fields["options"] = options
    else:
        fields["options"] = None

    if kind == "rating":
        low = fields.get("min_value")
        high = fields.get("max_value")
        low = 1 if low is None else int(low)
        high = 5 if high is None else int(high)
        if low > high:
            raise ReviewValidationError(question_id, "Minimum rating must not exceed maximum rating")
        fields["min_value"], fields["max_value"] = low, high
    else:
        fields["min_value"] = None
        fields["max_value"] = None

    if kind == "multi_choice":
        fields["allow_multiple"] = True
    return fields


async def _commit_question(db: AsyncSession, question: ReviewQuestion, action: str) -> ReviewQuestion:
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to %s review question: %s", action, e)
        raise PersistenceError(f"Failed to {action} review question") from e
    await db.refresh(question)
    return question


async def create_question(db: AsyncSession, fields: dict) -> ReviewQuestion:
    values = normalize_question(fields)
    question = ReviewQuestion(**{k: v for k, v in values.items() if k in QUESTION_FIELDS})
    db.add(question)
    return await _commit_question(db, question, "create")


async def update_question(db: AsyncSession, question_id: int, changes: dict) -> ReviewQuestion:
    """Partial update; the merged definition is validated as a whole.

    Null values mean "leave unchanged", so a stored kind or flag is never
    reset by an explicit null.
    """
    question = await get_question(db, question_id)
    merged = {field: getattr(question, field) for field in QUESTION_FIELDS}
    merged.update({k: v for k, v in changes.items() if v is not None})
    values = normalize_question(merged, question_id)

    for key in QUESTION_FIELDS:
        setattr(question, key, values[key])
    return await _commit_question(db, question, "update")


async def delete_question(db: AsyncSession, question_id: int) -> None:
    """Delete a question. Answers already recorded for it are removed too."""
    question = await get_question(db, question_id)
    result = await db.execute(select(ReviewAnswer).where(ReviewAnswer.question_id == question_id))
    for answer in result.scalars().all():
        await db.delete(answer)
    await db.delete(question)
    await db.commit()
