"""Prompt template model - operator-managed system prompts, one active per category."""
from sqlalchemy import String, Text, Integer, Boolean, Index, text
from sqlalchemy.orm import Mapped, mapped_column
from careerai.models.base import Base, TimestampMixin

PROMPT_CATEGORIES = ("chat", "skill", "system", "other")


class PromptTemplate(Base, TimestampMixin):
    __tablename__ = "prompt_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="chat", index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_by: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # At most one active template per category.
    __table_args__ = (
        Index(
            "uq_prompt_templates_active_category",
            "category",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )
