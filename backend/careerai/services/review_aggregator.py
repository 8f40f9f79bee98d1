"""Per-question statistics over all submitted review answers."""
from collections import defaultdict
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from careerai.models.review import ReviewAnswer, ReviewQuestion
from careerai.services.review_validator import LIKERT_CHOICES, is_number, is_non_empty_text


def _answer_values(answer: Any) -> list:
    """Flatten a stored payload to its list of values."""
    if not isinstance(answer, dict):
        return []
    if isinstance(answer.get("values"), list):
        return list(answer["values"])
    if "value" in answer and answer["value"] is not None:
        return [answer["value"]]
    return []


def _count_tokens(allowed, values: list) -> dict:
    counts = {token: 0 for token in allowed}
    for value in values:
        if isinstance(value, str) and value in counts:
            counts[value] += 1
    return counts


def question_stats(question: ReviewQuestion, values: list) -> dict:
    stats = {
        "question_id": question.id,
        "text": question.text,
        "kind": question.kind,
        "is_active": question.is_active,
    }
    if question.kind == "likert":
        stats["counts"] = _count_tokens(LIKERT_CHOICES, values)
    elif question.kind in ("single_choice", "multi_choice"):
        stats["counts"] = _count_tokens(question.options or [], values)
    elif question.kind == "rating":
        numbers = [v for v in values if is_number(v)]
        stats["count"] = len(numbers)
        stats["average"] = sum(numbers) / len(numbers) if numbers else None
    elif question.kind == "text":
        stats["count"] = sum(1 for v in values if is_non_empty_text(v))
    return stats


async def get_review_stats(db: AsyncSession) -> list[dict]:
    """One entry per question (active or not), ordered by display order then id."""
    questions = (await db.execute(
        select(ReviewQuestion).order_by(ReviewQuestion.display_order, ReviewQuestion.id)
    )).scalars().all()

    values_by_question = defaultdict(list)
    rows = await db.execute(select(ReviewAnswer.question_id, ReviewAnswer.answer))
    for question_id, answer in rows.all():
        values_by_question[question_id].extend(_answer_values(answer))

    return [question_stats(q, values_by_question[q.id]) for q in questions]
