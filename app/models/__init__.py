"""Data models and schemas."""

from app.models.schemas import (
    ExtractionType,
    TranscriptionModel,
    TranscriptionOptions,
    TranscriptionResult,
    ExtractionResult,
    BatchItemResult,
    CustomSchema,
    ErrorResponse,
)
from app.models.user import User

__all__ = [
    "ExtractionType",
    "TranscriptionModel",
    "TranscriptionOptions",
    "TranscriptionResult",
    "ExtractionResult",
    "BatchItemResult",
    "CustomSchema",
    "ErrorResponse",
    "User",
]
