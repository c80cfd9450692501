"""Transcription adapter over remote speech-to-text providers."""

import logging
import time
from typing import Dict, List, Optional

from app.exceptions import TranscriptionFailedError, VoiceAgentException
from app.models.schemas import (
    TranscriptionModel,
    TranscriptionOptions,
    TranscriptionResult,
    TranscriptSegment,
)
from app.types import RawTranscription, SupportsSpeechToText
from app.utils.helpers import count_words
from app.validators.upload_validator import UploadValidator

logger = logging.getLogger(__name__)


class TranscriptionService:
    """Validates audio locally, calls a provider and normalizes its response."""

    def __init__(
        self,
        providers: Dict[TranscriptionModel, SupportsSpeechToText],
        validator: Optional[UploadValidator] = None
    ):
        """
        Initialize transcription service.

        Args:
            providers: Speech-to-text provider per selectable model
            validator: Upload validator (type allow-list and size ceiling)
        """
        self.providers = providers
        self.validator = validator or UploadValidator()
        logger.info(f"TranscriptionService initialized with providers: {[m.value for m in providers]}")

    async def transcribe(
        self,
        audio: bytes,
        mime_type: str,
        filename: str,
        options: TranscriptionOptions
    ) -> TranscriptionResult:
        """
        Transcribe uploaded audio.

        Args:
            audio: Raw audio file content
            mime_type: Declared content type
            filename: Original filename
            options: Language, provider model, diarization and timestamp options

        Returns:
            Canonical TranscriptionResult

        Raises:
            UnsupportedMediaError: If type or size is rejected (no remote call is made)
            TranscriptionFailedError: If the provider fails or returns no text
        """
        self.validator.validate_audio(audio, mime_type, filename)

        provider = self.providers.get(options.model)
        if provider is None:
            raise TranscriptionFailedError(f"Unsupported transcription model: {options.model.value}")

        logger.info(f"Transcribing {filename} with {provider.name}")
        start = time.perf_counter()

        try:
            raw = await provider.transcribe(audio, mime_type, filename, options)
        except VoiceAgentException:
            raise
        except Exception as e:
            logger.error(f"Transcription failed for {filename}: {e}", exc_info=True)
            raise TranscriptionFailedError(f"Transcription failed: {e}", original_error=e)

        result = self.normalize(raw, provider.name, options)
        logger.info(
            f"Transcription complete in {time.perf_counter() - start:.2f}s: "
            f"{result.word_count} words, language: {result.language or 'unknown'}"
        )
        return result

    def normalize(
        self,
        raw: RawTranscription,
        model: str,
        options: TranscriptionOptions
    ) -> TranscriptionResult:
        """
        Map a provider payload to the canonical result.

        Understands fal.ai's ``chunks``/``inferred_languages`` shape and
        OpenAI's ``segments``/``language``/``duration`` shape.

        Raises:
            TranscriptionFailedError: If the payload has no transcript text
        """
        if not isinstance(raw, dict) or not isinstance(raw.get("text"), str):
            raise TranscriptionFailedError("Transcription provider returned no text")

        text = raw["text"].strip()
        segments = self._extract_segments(raw)

        duration = raw.get("duration")
        if not isinstance(duration, (int, float)) or isinstance(duration, bool):
            duration = None
        if duration is None and segments:
            duration = max(segment.end for segment in segments)

        return TranscriptionResult(
            text=text,
            language=self._extract_language(raw),
            confidence=self._extract_confidence(raw),
            segments=segments if options.want_timestamps and segments else None,
            model=model,
            word_count=count_words(text),
            duration=float(duration) if duration is not None else None
        )

    @staticmethod
    def _extract_language(raw: RawTranscription) -> Optional[str]:
        inferred = raw.get("inferred_languages")
        if inferred:
            return inferred[0]
        return raw.get("language") or None

    @staticmethod
    def _extract_confidence(raw: RawTranscription) -> Optional[float]:
        confidence = raw.get("confidence")
        if isinstance(confidence, (int, float)) and 0.0 <= confidence <= 1.0:
            return float(confidence)
        return None

    @staticmethod
    def _extract_segments(raw: RawTranscription) -> List[TranscriptSegment]:
        segments = []

        for i, chunk in enumerate(raw.get("chunks") or []):
            timestamp = chunk.get("timestamp") or []
            if len(timestamp) != 2 or timestamp[0] is None:
                logger.warning(f"Skipping chunk {i} without timing")
                continue
            start, end = timestamp
            segments.append(TranscriptSegment(
                text=(chunk.get("text") or "").strip(),
                start=float(start),
                # Final fal.ai chunk may have an open end
                end=float(end if end is not None else start),
                speaker=chunk.get("speaker")
            ))

        for i, seg in enumerate(raw.get("segments") or []):
            if seg.get("start") is None or seg.get("end") is None:
                logger.warning(f"Skipping segment {i} without timing")
                continue
            segments.append(TranscriptSegment(
                text=(seg.get("text") or "").strip(),
                start=float(seg["start"]),
                end=float(seg["end"]),
                speaker=seg.get("speaker")
            ))

        return segments
