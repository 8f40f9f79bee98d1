"""SQLAlchemy declarative base and shared mixins."""
from datetime import datetime
from sqlalchemy import Integer, DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    # Load server-side timestamps on flush so responses never lazy-load them.
    __mapper_args__ = {"eager_defaults": True}


class TimestampMixin:
    """Adds created_at and updated_at columns."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class UserMixin:
    """Adds the owning user's id. Users live in the auth service, so no FK."""
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
