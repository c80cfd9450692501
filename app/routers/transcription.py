"""Transcription API routes."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.dependencies import CurrentUserDep, TranscriptionServiceDep
from app.exceptions import ValidationError
from app.models.schemas import (
    ErrorResponse,
    TranscriptionModel,
    TranscriptionOptions,
    TranscriptionResponse,
    UploadMetadata,
)
from app.utils.helpers import estimate_transcription_cost
from app.validators.upload_validator import UploadValidator

router = APIRouter()
logger = logging.getLogger(__name__)


def transcription_options_form(
    model: Annotated[TranscriptionModel, Form(description="Speech-to-text provider")] = TranscriptionModel.FAL_WHISPER,
    language: Annotated[str, Form(description="Audio language code (e.g., 'en', 'es')")] = "",
    timestamp: Annotated[str, Form(description="'true' to include timed segments")] = "true",
    speaker_diarization: Annotated[
        str, Form(alias="speakerDiarization", description="'true' to label speakers")
    ] = "false"
) -> TranscriptionOptions:
    """
    Convert multipart form fields to TranscriptionOptions.

    HTML forms send flags as strings and empty fields as "", so both are
    normalized here.

    Raises:
        ValidationError: If the language code is invalid
    """
    return TranscriptionOptions(
        language=UploadValidator.normalize_language(language),
        model=model,
        diarization=UploadValidator.parse_bool_flag(speaker_diarization, default=False),
        want_timestamps=UploadValidator.parse_bool_flag(timestamp, default=True)
    )


@router.post(
    "/upload",
    response_model=TranscriptionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid file type, size or options"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
        500: {"model": ErrorResponse, "description": "Transcription provider failed"}
    }
)
async def upload_audio(
    user: CurrentUserDep,
    transcription_service: TranscriptionServiceDep,
    options: Annotated[TranscriptionOptions, Depends(transcription_options_form)],
    audio: Annotated[Optional[UploadFile], File(description="Audio file to transcribe")] = None
) -> TranscriptionResponse:
    """
    Upload an audio file and transcribe it synchronously.

    Args:
        audio: Audio file (MP3, WAV, M4A, WebM, FLAC, ...)
        options: Provider model, language, timestamp and diarization flags

    Returns:
        TranscriptionResponse with the transcript and upload metadata

    Raises:
        UnsupportedMediaError: Bad file type or size (400, no remote call)
        TranscriptionFailedError: Provider failure (500)
    """
    if audio is None:
        raise ValidationError("No audio file provided")

    filename = audio.filename or ""
    mime_type = audio.content_type or ""
    logger.info(f"Received transcription request from {user.user_id}: {filename} ({mime_type})")

    content = await audio.read()

    result = await transcription_service.transcribe(content, mime_type, filename, options)

    estimated_cost = None
    if result.duration is not None:
        estimated_cost = estimate_transcription_cost(result.duration / 60, options.model.value)

    return TranscriptionResponse(
        transcription=result,
        metadata=UploadMetadata(
            file_name=filename,
            file_size=len(content),
            mime_type=mime_type,
            model=options.model,
            estimated_cost=estimated_cost
        )
    )
