"""Notification request/response schemas."""
from typing import Optional
from datetime import datetime
from pydantic import Field
from careerai.schemas.base import CamelModel, CamelORMModel


class NotificationResponse(CamelORMModel):
    id: int
    type: str
    title: Optional[str] = None
    message: str
    link: Optional[str] = None
    target_all: bool
    is_read: bool
    metadata_: Optional[dict] = Field(None, serialization_alias="metadata")
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None


class LowSkillSweepRequest(CamelModel):
    threshold: Optional[int] = Field(None, ge=0, le=100)


class LowSkillSweepResponse(CamelModel):
    notified_count: int
