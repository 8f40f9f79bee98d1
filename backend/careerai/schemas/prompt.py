"""Prompt template request/response schemas."""
from typing import Literal, Optional
from datetime import datetime
from pydantic import Field
from careerai.schemas.base import CamelModel, CamelORMModel

PromptCategory = Literal["chat", "skill", "system", "other"]


class PromptTemplateCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1)
    category: PromptCategory = "chat"
    is_active: bool = False


class PromptTemplateUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    body: Optional[str] = Field(None, min_length=1)
    category: Optional[PromptCategory] = None
    is_active: Optional[bool] = None


class PromptTemplateResponse(CamelORMModel):
    id: int
    title: str
    body: str
    category: str
    is_active: bool
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
