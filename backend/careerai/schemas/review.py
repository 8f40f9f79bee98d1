"""Review and review question request/response schemas."""
from typing import Any, Optional
from datetime import datetime
from careerai.schemas.base import CamelModel, CamelORMModel


class AnswerIn(CamelModel):
    """One submitted answer. Single-valued questions use ``value``, multi-valued ``values``."""
    question_id: int
    value: Any = None
    values: Optional[list[Any]] = None


class ReviewSubmit(CamelModel):
    answers: list[AnswerIn] = []
    comment: Optional[str] = None


class ReviewSubmitResponse(CamelModel):
    review_id: int


class ReviewAnswerResponse(CamelORMModel):
    id: int
    question_id: int
    answer: dict


class ReviewResponse(CamelORMModel):
    id: int
    user_id: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    answers: list[ReviewAnswerResponse] = []


class ReviewQuestionCreate(CamelModel):
    text: str
    kind: str = "likert"
    is_active: bool = True
    display_order: int = 0
    allow_multiple: bool = False
    options: Optional[list[str]] = None
    min_value: Optional[int] = None
    max_value: Optional[int] = None


class ReviewQuestionUpdate(CamelModel):
    text: Optional[str] = None
    kind: Optional[str] = None
    is_active: Optional[bool] = None
    display_order: Optional[int] = None
    allow_multiple: Optional[bool] = None
    options: Optional[list[str]] = None
    min_value: Optional[int] = None
    max_value: Optional[int] = None


class ReviewQuestionResponse(CamelORMModel):
    id: int
    text: str
    kind: str
    is_active: bool
    display_order: int
    allow_multiple: bool
    options: Optional[list[str]] = None
    min_value: Optional[int] = None
    max_value: Optional[int] = None


class QuestionStats(CamelModel):
    """Choice kinds fill ``counts``; rating fills ``count`` and ``average``; text fills ``count``."""
    question_id: int
    text: str
    kind: str
    is_active: bool
    counts: Optional[dict[str, int]] = None
    count: Optional[int] = None
    average: Optional[float] = None
