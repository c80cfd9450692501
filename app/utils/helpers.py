"""Utility helper functions."""

import time
from datetime import datetime, timezone

from starlette.requests import Request

# Rough token economics used for cost hints shown to the client
CHARS_PER_TOKEN = 4
EXTRACTION_COST_PER_1K_TOKENS = 0.03
TRANSCRIPTION_COST_PER_MINUTE = {
    "fal-whisper": 0.005,
    "openai-whisper": 0.006,
}


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def elapsed_ms(start: float) -> int:
    """
    Milliseconds since ``start``.

    Args:
        start: Value previously returned by ``time.perf_counter()``
    """
    return int((time.perf_counter() - start) * 1000)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_client_ip(request: Request) -> str:
    """Best-effort client address used as the rate limit key."""
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def estimate_extraction_cost(transcription_length: int) -> float:
    """
    Estimate extraction cost in USD for a transcript of the given length.

    Assumes ~4 characters per token, doubled for prompt plus completion.
    """
    estimated_tokens = -(-transcription_length // CHARS_PER_TOKEN) * 2
    return round(estimated_tokens / 1000 * EXTRACTION_COST_PER_1K_TOKENS, 6)


def estimate_transcription_cost(duration_minutes: float, model: str) -> float:
    """Estimate transcription cost in USD for ``duration_minutes`` of audio."""
    per_minute = TRANSCRIPTION_COST_PER_MINUTE.get(model, TRANSCRIPTION_COST_PER_MINUTE["fal-whisper"])
    return round(per_minute * duration_minutes, 6)
