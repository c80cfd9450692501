"""Remote speech-to-text providers.

Each provider submits audio to one vendor and returns that vendor's own
response as a dict. Validation, error wrapping and normalization live in
``TranscriptionService``.
"""

import logging
import time

import fal_client
from openai import AsyncOpenAI

from app.models.schemas import TranscriptionModel, TranscriptionOptions
from app.types import RawTranscription

logger = logging.getLogger(__name__)


class FalWhisperProvider:
    """Whisper hosted on fal.ai: upload to fal storage, then run the model."""

    name = TranscriptionModel.FAL_WHISPER.value
    application = "fal-ai/whisper"

    def __init__(self, api_key: str, version: str = "3", client=None):
        self.version = version
        self.client = client or fal_client.AsyncClient(key=api_key)

    async def transcribe(
        self,
        audio: bytes,
        mime_type: str,
        filename: str,
        options: TranscriptionOptions
    ) -> RawTranscription:
        logger.info(f"Uploading {filename} ({len(audio)} bytes) to fal.ai storage")
        audio_url = await self.client.upload(audio, mime_type, file_name=filename)

        arguments = {
            "audio_url": audio_url,
            "task": "transcribe",
            "diarize": options.diarization,
            "chunk_level": "segment",
            "version": self.version,
        }
        if options.language:
            arguments["language"] = options.language

        start = time.perf_counter()
        result = await self.client.subscribe(self.application, arguments=arguments)
        logger.info(f"fal.ai Whisper finished in {time.perf_counter() - start:.2f}s")
        return dict(result)


class OpenAIWhisperProvider:
    """OpenAI's hosted Whisper transcription endpoint."""

    name = TranscriptionModel.OPENAI_WHISPER.value

    def __init__(self, api_key: str, model: str = "whisper-1", client=None):
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key)

    async def transcribe(
        self,
        audio: bytes,
        mime_type: str,
        filename: str,
        options: TranscriptionOptions
    ) -> RawTranscription:
        if options.diarization:
            logger.info("Speaker diarization is not supported by OpenAI Whisper; ignoring")

        kwargs = {
            "model": self.model,
            "file": (filename, audio, mime_type),
            "response_format": "verbose_json",
            "timestamp_granularities": ["segment"],
        }
        if options.language:
            kwargs["language"] = options.language

        start = time.perf_counter()
        response = await self.client.audio.transcriptions.create(**kwargs)
        logger.info(f"OpenAI Whisper finished in {time.perf_counter() - start:.2f}s")
        return response.model_dump()
