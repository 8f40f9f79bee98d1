"""Skill models - skill catalogue and per-user assessment scores."""
from sqlalchemy import String, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from careerai.models.base import Base, TimestampMixin, UserMixin


class Skill(Base):
    __tablename__ = "skills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)


class UserSkill(Base, TimestampMixin, UserMixin):
    __tablename__ = "user_skills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    skill_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("skills.id", ondelete="CASCADE"), nullable=False, index=True
    )
    proficiency: Mapped[str | None] = mapped_column(String(20), nullable=True)
    skill_score: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 0-100

    skill: Mapped["Skill"] = relationship()
