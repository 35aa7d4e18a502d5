"""
AnaPro Platform - Pydantic Schemas
Shared base models and generic responses
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON while keeping snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =========================
# Message Schemas
# =========================

class Message(BaseModel):
    """Generic message response schema."""
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Error response schema."""
    error: str
    code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
