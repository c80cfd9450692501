"""Business logic services."""

from app.services.auth import AuthService
from app.services.batch_extraction import BatchExtractionOrchestrator
from app.services.extraction import ExtractionService
from app.services.transcription import TranscriptionService

__all__ = [
    "AuthService",
    "BatchExtractionOrchestrator",
    "ExtractionService",
    "TranscriptionService",
]
