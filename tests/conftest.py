"""Pytest fixtures for testing the Voice Extraction API."""

import json
import os

import pytest
from fastapi.testclient import TestClient

# Set required environment variables before importing the app
os.environ["JWT_SECRET"] = "test-secret-key"
os.environ["FAL_KEY"] = "test-fal-key"
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

from app.models.schemas import TranscriptionModel  # noqa: E402
from app.repositories.user_repository import InMemoryUserRepository  # noqa: E402
from app.services.auth import AuthService  # noqa: E402
from app.services.batch_extraction import BatchExtractionOrchestrator  # noqa: E402
from app.services.extraction import ExtractionService  # noqa: E402
from app.services.transcription import TranscriptionService  # noqa: E402
from app.types import CompletionResponse  # noqa: E402
from app.utils.concurrency import FixedDelayPacing  # noqa: E402
from app.utils.rate_limiter import SlidingWindowRateLimiter  # noqa: E402
from app.validators.upload_validator import UploadValidator  # noqa: E402

DEFAULT_EXTRACTION = {
    "customer_name": "Jane Doe",
    "make": "Honda",
    "model": "Civic",
    "year": "2018",
    "problem_description": "Brakes squeal when stopping",
    "confidence": 0.92,
}

DEFAULT_FAL_RESPONSE = {
    "text": " Customer Jane Doe says the brakes on her 2018 Honda Civic squeal. ",
    "chunks": [
        {"timestamp": [0.0, 2.5], "text": "Customer Jane Doe says", "speaker": "SPEAKER_00"},
        {"timestamp": [2.5, 6.0], "text": "the brakes on her 2018 Honda Civic squeal.", "speaker": "SPEAKER_00"},
    ],
    "inferred_languages": ["en"],
}


class FakeCompletionClient:
    """Stands in for the OpenAI completion client."""

    def __init__(self, payload=None, error=None, raw_text=None):
        self.payload = DEFAULT_EXTRACTION if payload is None else payload
        self.error = error
        self.raw_text = raw_text
        self.prompts = []

    async def complete(self, system_prompt, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        text = self.raw_text if self.raw_text is not None else json.dumps(self.payload)
        return CompletionResponse(
            text=text,
            prompt_tokens=120,
            completion_tokens=80,
            total_tokens=200
        )


class FakeSpeechProvider:
    """Stands in for a remote speech-to-text provider."""

    def __init__(self, response=None, error=None, name=TranscriptionModel.FAL_WHISPER.value):
        self.response = DEFAULT_FAL_RESPONSE if response is None else response
        self.error = error
        self.name = name
        self.calls = []

    async def transcribe(self, audio, mime_type, filename, options):
        self.calls.append((filename, mime_type, options))
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def completion_client():
    return FakeCompletionClient()


@pytest.fixture
def speech_provider():
    return FakeSpeechProvider()


@pytest.fixture
def user_repository():
    return InMemoryUserRepository()


@pytest.fixture
def auth_service(user_repository):
    return AuthService(user_repository, secret="test-secret-key", bcrypt_rounds=4)


@pytest.fixture
def extraction_service(completion_client):
    return ExtractionService(completion_client)


@pytest.fixture
def transcription_service(speech_provider):
    validator = UploadValidator(
        allowed_mime_types={"audio/mpeg", "audio/wav", "audio/mp3", "audio/mp4",
                            "audio/m4a", "audio/webm", "audio/flac"},
        max_size_bytes=50 * 1024 * 1024
    )
    return TranscriptionService({TranscriptionModel.FAL_WHISPER: speech_provider}, validator)


@pytest.fixture
def sleeps():
    """Records pacing delays instead of sleeping."""
    return []


@pytest.fixture
def batch_orchestrator(extraction_service, sleeps):
    async def fake_sleep(seconds):
        sleeps.append(seconds)

    return BatchExtractionOrchestrator(
        extraction_service,
        max_items=10,
        chunk_size=3,
        pacing=FixedDelayPacing(1.0, sleep=fake_sleep)
    )


@pytest.fixture
def rate_limiter():
    return SlidingWindowRateLimiter(max_requests=1000, window_seconds=60)


@pytest.fixture
def client(auth_service, rate_limiter, transcription_service, extraction_service, batch_orchestrator):
    """FastAPI test client with remote providers faked out."""
    from app.dependencies import (
        get_auth_service,
        get_batch_orchestrator,
        get_extraction_service,
        get_rate_limiter,
        get_transcription_service,
    )
    from app.main import app

    app.dependency_overrides[get_auth_service] = lambda: auth_service
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_transcription_service] = lambda: transcription_service
    app.dependency_overrides[get_extraction_service] = lambda: extraction_service
    app.dependency_overrides[get_batch_orchestrator] = lambda: batch_orchestrator

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    """Register a user through the API and return its bearer header."""
    response = client.post(
        "/api/auth/register",
        json={"email": "mechanic@shop.com", "password": "wrench1234", "name": "Sam"}
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}
