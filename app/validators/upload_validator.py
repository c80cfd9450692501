"""Validators for audio uploads and transcription parameters.

This module keeps upload checks out of route handlers and out of the
remote provider path: everything here runs before any remote call.
"""

import logging
from typing import Optional

from app.config import settings
from app.exceptions import UnsupportedMediaError, ValidationError

logger = logging.getLogger(__name__)


class UploadValidator:
    """Validates audio uploads and transcription parameters."""

    def __init__(
        self,
        allowed_mime_types: Optional[set[str]] = None,
        max_size_bytes: Optional[int] = None
    ):
        self.allowed_mime_types = allowed_mime_types or settings.allowed_mime_types
        self.max_size_bytes = max_size_bytes or settings.max_upload_size_bytes

    def validate_audio(
        self,
        audio: bytes,
        mime_type: str,
        filename: str
    ) -> None:
        """
        Validate uploaded audio against the type allow-list and size ceiling.

        Args:
            audio: Raw file content
            mime_type: Declared content type
            filename: Original filename

        Raises:
            UnsupportedMediaError: If validation fails
        """
        if not filename:
            raise UnsupportedMediaError("File must have a filename")

        normalized = (mime_type or "").split(";")[0].strip().lower()
        if normalized not in self.allowed_mime_types:
            allowed = ', '.join(sorted(self.allowed_mime_types))
            raise UnsupportedMediaError(
                f"Invalid file type '{mime_type}'. "
                f"Only audio files are allowed: {allowed}"
            )

        size = len(audio)
        if size == 0:
            raise UnsupportedMediaError("File is empty")

        if size > self.max_size_bytes:
            size_mb = size / 1024 / 1024
            raise UnsupportedMediaError(
                f"File size {size_mb:.2f}MB exceeds maximum "
                f"{self.max_size_bytes / 1024 / 1024:.0f}MB"
            )

        logger.debug(f"Audio validation passed: {filename} ({size / 1024 / 1024:.2f}MB)")

    @staticmethod
    def normalize_language(language: Optional[str]) -> Optional[str]:
        """
        Normalize and validate an optional language code.

        Returns:
            Lowercased code, or None when blank

        Raises:
            ValidationError: If the code is too long or has invalid characters
        """
        if language is None:
            return None

        language = language.lower().strip()
        if not language:
            return None

        if len(language) > 5:
            raise ValidationError("Language code too long (max 5 characters)")

        # Only alphanumeric and hyphen
        if not all(c.isalnum() or c == '-' for c in language):
            raise ValidationError("Language code contains invalid characters")

        return language

    @staticmethod
    def parse_bool_flag(value: Optional[str], default: bool) -> bool:
        """Interpret an HTML form flag; only the literal 'true' is true."""
        if value is None or value == "":
            return default
        return value.strip().lower() == "true"
