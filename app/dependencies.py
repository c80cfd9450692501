"""Dependency injection for services, repositories and the request gate.

This module provides factory functions for creating service and repository
instances using FastAPI's dependency injection system. Services are cached
as singletons per worker process; tests replace them through
``app.dependency_overrides``.

Every ``/api`` request passes ``gate_request`` first: rate limit (429), then
the bearer check on protected prefixes (401). Body validation (400) only
happens once the gate has let the request through.
"""

import logging
from functools import lru_cache
from typing import Annotated, Callable, Optional, TypeVar

from fastapi import Depends, FastAPI, Request

from app.config import settings
from app.exceptions import AuthError
from app.models.schemas import AuthenticatedUser, TranscriptionModel
from app.repositories.user_repository import InMemoryUserRepository
from app.services.auth import AuthService
from app.services.batch_extraction import BatchExtractionOrchestrator
from app.services.extraction import ExtractionService
from app.services.llm_client import OpenAICompletionClient
from app.services.speech_to_text import FalWhisperProvider, OpenAIWhisperProvider
from app.services.transcription import TranscriptionService
from app.utils.concurrency import FixedDelayPacing
from app.utils.helpers import get_client_ip
from app.utils.rate_limiter import SlidingWindowRateLimiter
from app.validators.upload_validator import UploadValidator

logger = logging.getLogger(__name__)

T = TypeVar('T')


# Service factories (singleton pattern)

@lru_cache()
def get_user_repository() -> InMemoryUserRepository:
    """
    Get or create the user repository singleton.

    The in-memory store only works in a single process.
    """
    return InMemoryUserRepository()


@lru_cache()
def get_auth_service() -> AuthService:
    return AuthService(
        repository=get_user_repository(),
        secret=settings.jwt_secret,
        expires_in=settings.jwt_expires_in,
        algorithm=settings.jwt_algorithm,
        bcrypt_rounds=settings.bcrypt_rounds
    )


@lru_cache()
def get_rate_limiter() -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds
    )


@lru_cache()
def get_transcription_service() -> TranscriptionService:
    """
    Get or create transcription service singleton.

    Returns:
        TranscriptionService with every selectable provider registered
    """
    providers = {
        TranscriptionModel.FAL_WHISPER: FalWhisperProvider(
            api_key=settings.fal_key,
            version=settings.whisper_version
        ),
        TranscriptionModel.OPENAI_WHISPER: OpenAIWhisperProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_whisper_model
        ),
    }
    return TranscriptionService(providers, UploadValidator())


@lru_cache()
def get_extraction_service() -> ExtractionService:
    llm = OpenAICompletionClient(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        temperature=settings.extraction_temperature
    )
    return ExtractionService(llm)


@lru_cache()
def get_batch_orchestrator() -> BatchExtractionOrchestrator:
    return BatchExtractionOrchestrator(
        extractor=get_extraction_service(),
        max_items=settings.batch_max_items,
        chunk_size=settings.batch_chunk_size,
        pacing=FixedDelayPacing(settings.batch_delay_seconds)
    )


# Request gate
#
# Runs from the HTTP middleware in app.main, before FastAPI reads the body,
# so throttled or unauthenticated clients never reach body parsing.

RATE_LIMITED_PREFIX = "/api"
PROTECTED_PREFIXES = ("/api/transcription", "/api/extraction")


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def resolve(app: FastAPI, factory: Callable[[], T]) -> T:
    """Call a service factory outside DI, honoring ``app.dependency_overrides``."""
    return app.dependency_overrides.get(factory, factory)()


def bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the token out of an ``Authorization: Bearer <token>`` header.

    Raises:
        AuthError: If the header is missing or not a bearer credential
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Access denied. No token provided.")
    return token.strip()


async def gate_request(request: Request) -> Optional[int]:
    """
    Apply the per-IP rate limit and, on protected prefixes, the bearer check.

    Returns:
        Requests remaining in the client's window, or None outside ``/api``

    Raises:
        RateLimitError: If the client exhausted its window budget (checked first)
        AuthError: If a protected route has no valid bearer token
    """
    path = request.url.path
    if request.method == "OPTIONS" or not _under(path, RATE_LIMITED_PREFIX):
        return None

    limiter = resolve(request.app, get_rate_limiter)
    remaining = await limiter.hit(get_client_ip(request))

    if any(_under(path, prefix) for prefix in PROTECTED_PREFIXES):
        auth_service = resolve(request.app, get_auth_service)
        try:
            token = bearer_token(request.headers.get("Authorization"))
        except AuthError:
            logger.warning(f"Missing bearer token on {path}")
            raise
        request.state.user = auth_service.verify(token)

    return remaining


async def get_current_user(request: Request) -> AuthenticatedUser:
    """
    Identity attached by the request gate.

    Raises:
        AuthError: If the route was reached without passing the gate
    """
    user = getattr(request.state, "user", None)
    if user is None:
        raise AuthError("Access denied. No token provided.")
    return user


# Type aliases for cleaner route signatures

UserRepositoryDep = Annotated[InMemoryUserRepository, Depends(get_user_repository)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
TranscriptionServiceDep = Annotated[TranscriptionService, Depends(get_transcription_service)]
ExtractionServiceDep = Annotated[ExtractionService, Depends(get_extraction_service)]
BatchOrchestratorDep = Annotated[BatchExtractionOrchestrator, Depends(get_batch_orchestrator)]
CurrentUserDep = Annotated[AuthenticatedUser, Depends(get_current_user)]
