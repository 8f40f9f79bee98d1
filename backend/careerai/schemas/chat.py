"""Chat request/response schemas."""
from typing import Optional
from datetime import datetime
from pydantic import model_validator
from careerai.schemas.base import CamelModel, CamelORMModel


class AttachmentIn(CamelModel):
    """Attachment metadata as returned by the upload endpoint."""
    stored_name: str
    original_name: str
    storage_path: str
    kind: str = ""
    size_bytes: int = 0
    mime_type: str


class ChatSubmit(CamelModel):
    message: str = ""
    attachments: list[AttachmentIn] = []

    @model_validator(mode="after")
    def require_content(self):
        if not self.message.strip() and not self.attachments:
            raise ValueError("A message or at least one attachment is required")
        return self


class AttachmentResponse(CamelORMModel):
    id: int
    stored_name: str
    original_name: str
    storage_path: str
    kind: str
    size_bytes: int
    mime_type: str
    created_at: Optional[datetime] = None


class ChatTurnResponse(CamelORMModel):
    id: int
    role: str
    text: str
    has_attachments: bool
    attachments: list[AttachmentResponse] = []
    created_at: Optional[datetime] = None


class ChatReply(CamelModel):
    reply: str
