"""Utility functions."""

from app.utils.helpers import (
    count_words,
    elapsed_ms,
    estimate_extraction_cost,
    estimate_transcription_cost,
    get_client_ip,
)

__all__ = [
    "count_words",
    "elapsed_ms",
    "estimate_extraction_cost",
    "estimate_transcription_cost",
    "get_client_ip",
]
