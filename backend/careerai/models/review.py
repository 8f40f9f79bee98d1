"""Review models - survey questions, submissions and their typed answers."""
from datetime import datetime
from sqlalchemy import String, Text, Integer, Boolean, JSON, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from careerai.models.base import Base, TimestampMixin, UserMixin

QUESTION_KINDS = ("likert", "single_choice", "multi_choice", "text", "rating")
CHOICE_KINDS = ("single_choice", "multi_choice")


class ReviewQuestion(Base, TimestampMixin):
    __tablename__ = "review_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    text: Mapped[str] = mapped_column(String(500), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    kind: Mapped[str] = mapped_column(String(20), nullable=False, default="likert")
    allow_multiple: Mapped[bool] = mapped_column(Boolean, default=False)
    options: Mapped[list | None] = mapped_column(JSON, nullable=True)
    min_value: Mapped[int | None] = mapped_column(Integer, nullable=True, default=1)
    max_value: Mapped[int | None] = mapped_column(Integer, nullable=True, default=5)


class Review(Base, UserMixin):
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    answers: Mapped[list["ReviewAnswer"]] = relationship(
        back_populates="review", cascade="all, delete-orphan", order_by="ReviewAnswer.id"
    )


class ReviewAnswer(Base):
    __tablename__ = "review_answers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    review_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("review_questions.id"), nullable=False, index=True
    )
    # {"type": kind, "value": v} or {"type": kind, "values": [...]}
    answer: Mapped[dict] = mapped_column(JSON, nullable=False)

    review: Mapped["Review"] = relationship(back_populates="answers")
