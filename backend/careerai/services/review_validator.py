"""Type-directed validation of review answers.

Submitted answers are untyped ``{questionId, value | values}`` payloads. Each
one is checked against its question's kind and turned into one of five typed
answers, or the whole batch is rejected with the first offending question.
Nothing here touches the database except the question lookup.
"""
import math
from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from careerai.exceptions import ReviewValidationError
from careerai.models.review import ReviewQuestion

LIKERT_CHOICES = ("very_satisfied", "satisfied", "neutral", "unsatisfied", "very_unsatisfied")
DEFAULT_MIN_RATING = 1
DEFAULT_MAX_RATING = 5


@dataclass(frozen=True)
class _TypedAnswer:
    kind: ClassVar[str]
    question_id: int
    values: tuple
    multiple: bool

    def payload(self) -> dict:
        """Self-describing storage form, tagged with the question kind."""
        if self.multiple:
            return {"type": self.kind, "values": list(self.values)}
        return {"type": self.kind, "value": self.values[0]}


@dataclass(frozen=True)
class LikertAnswer(_TypedAnswer):
    kind: ClassVar[str] = "likert"


@dataclass(frozen=True)
class ChoiceAnswer(_TypedAnswer):
    kind: ClassVar[str] = "single_choice"


@dataclass(frozen=True)
class MultiChoiceAnswer(_TypedAnswer):
    kind: ClassVar[str] = "multi_choice"


@dataclass(frozen=True)
class TextAnswer(_TypedAnswer):
    kind: ClassVar[str] = "text"


@dataclass(frozen=True)
class RatingAnswer(_TypedAnswer):
    kind: ClassVar[str] = "rating"


TypedAnswer = Union[LikertAnswer, ChoiceAnswer, MultiChoiceAnswer, TextAnswer, RatingAnswer]

_ANSWER_TYPES = {
    cls.kind: cls
    for cls in (LikertAnswer, ChoiceAnswer, MultiChoiceAnswer, TextAnswer, RatingAnswer)
}


def is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # ints of any size compare exactly; only floats can be NaN
    return not (isinstance(value, float) and math.isnan(value))


def is_non_empty_text(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def rating_bounds(question: ReviewQuestion) -> tuple[int, int]:
    low = question.min_value if question.min_value is not None else DEFAULT_MIN_RATING
    high = question.max_value if question.max_value is not None else DEFAULT_MAX_RATING
    return low, high


def _element_predicate(question: ReviewQuestion):
    kind = question.kind
    if kind == "likert":
        return lambda v: v in LIKERT_CHOICES, "likert"
    if kind in ("single_choice", "multi_choice"):
        options = list(question.options or [])
        if not options:
            raise ReviewValidationError(question.id, f"Question {question.id} has no options")
        return lambda v: isinstance(v, str) and v in options, "choice"
    if kind == "text":
        return is_non_empty_text, "text"
    if kind == "rating":
        low, high = rating_bounds(question)
        return lambda v: is_number(v) and low <= v <= high, "rating"
    raise ReviewValidationError(question.id, f"Unsupported question type for {question.id}")


def validate_answer(question: ReviewQuestion, value: Any = None, values: Optional[list] = None) -> TypedAnswer:
    """Check one answer against its question. Raises ReviewValidationError."""
    predicate, label = _element_predicate(question)
    multiple = bool(question.allow_multiple) or question.kind == "multi_choice"

    if multiple:
        if not isinstance(values, list) or not values or not all(predicate(v) for v in values):
            raise ReviewValidationError(question.id, f"Invalid {label} values for question {question.id}")
        collected = tuple(values)
    else:
        if value is None or not predicate(value):
            raise ReviewValidationError(question.id, f"Invalid {label} value for question {question.id}")
        collected = (value,)

    return _ANSWER_TYPES[question.kind](question_id=question.id, values=collected, multiple=multiple)


async def load_and_validate(db: AsyncSession, answers: Sequence) -> list[TypedAnswer]:
    """Validate a submitted batch (objects with question_id, value, values).

    All-or-nothing: the first problem raises and no typed answers are returned.
    """
    if not answers:
        raise ReviewValidationError(None, "Answers are required")

    seen = set()
    for a in answers:
        if a.question_id in seen:
            raise ReviewValidationError(a.question_id, f"Question {a.question_id} answered more than once")
        seen.add(a.question_id)

    result = await db.execute(
        select(ReviewQuestion).where(
            ReviewQuestion.id.in_(seen), ReviewQuestion.is_active.is_(True)
        )
    )
    questions = {q.id: q for q in result.scalars().all()}

    for a in answers:
        if a.question_id not in questions:
            raise ReviewValidationError(a.question_id, f"Question {a.question_id} not found or inactive")

    return [validate_answer(questions[a.question_id], a.value, a.values) for a in answers]
