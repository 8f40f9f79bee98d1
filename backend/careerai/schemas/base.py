"""Base schema classes with camelCase alias generation.

API schemas inherit from these instead of BaseModel directly, so Python code
stays snake_case while request and response JSON is camelCase.
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request bodies and plain responses. Accepts either casing, outputs camelCase."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class CamelORMModel(BaseModel):
    """Responses read straight from SQLAlchemy rows."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }
