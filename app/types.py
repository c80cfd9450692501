"""Type definitions and protocols for the voice extraction application.

This module provides:
- Protocol definitions for the remote provider capabilities
- Protocol definition for the user repository
- Type aliases for provider payloads
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, TypeAlias

from app.models.schemas import TranscriptionOptions
from app.models.user import User

RawTranscription: TypeAlias = Dict[str, Any]
"""Provider-specific transcription payload, normalized by the transcription service."""

ExtractedFields: TypeAlias = Dict[str, Any]
"""Flat field name -> value mapping parsed from the extraction provider."""


@dataclass(frozen=True)
class CompletionResponse:
    """Text returned by a completion provider plus optional token usage."""

    text: str
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


# Protocols for duck-typed interfaces

class SupportsSpeechToText(Protocol):
    """Protocol for remote speech-to-text providers.

    Implementations submit audio and return the provider's own response
    shape; the transcription service owns validation and normalization.
    """

    name: str

    async def transcribe(
        self,
        audio: bytes,
        mime_type: str,
        filename: str,
        options: TranscriptionOptions
    ) -> RawTranscription:
        """Transcribe audio bytes.

        Args:
            audio: Raw audio file content
            mime_type: Content type of the audio
            filename: Original filename
            options: Language, diarization and timestamp options

        Returns:
            Provider response as a plain dictionary
        """
        ...


class SupportsCompletion(Protocol):
    """Protocol for remote text-generation providers returning JSON text."""

    async def complete(self, system_prompt: str, prompt: str) -> CompletionResponse:
        """Generate a machine-parseable completion for a prompt.

        Raises:
            ProviderRateLimitError: If the provider throttled the call
            ExtractionFailedError: For any other provider failure
        """
        ...


class SupportsUserRepository(Protocol):
    """Protocol for user storage used by the auth service."""

    async def get_by_email(self, email: str) -> Optional[User]:
        ...

    async def insert(self, user: User) -> User:
        """Insert a user unless the email is taken.

        Raises:
            DuplicateUserError: If a user with the same email exists
        """
        ...
