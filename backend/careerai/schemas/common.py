"""Shared Pydantic schemas."""
from careerai.schemas.base import CamelModel


class DeleteResponse(CamelModel):
    deleted: bool = True
    id: int
