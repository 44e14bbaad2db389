"""Schemas Pydantic pour validation des donnees."""

from app.schemas.responses import (
    COMMON_RESPONSES,
    ErrorResponse,
    SuccessResponse,
    build_responses,
)

__all__ = [
    "COMMON_RESPONSES",
    "ErrorResponse",
    "SuccessResponse",
    "build_responses",
]
