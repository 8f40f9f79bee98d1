"""File upload response schema."""
from careerai.schemas.base import CamelModel


class UploadResponse(CamelModel):
    stored_name: str
    original_name: str
    storage_path: str
    kind: str
    size_bytes: int
    mime_type: str
