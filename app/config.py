"""Application configuration using Pydantic Settings."""

import re
from datetime import timedelta
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Authentication
    jwt_secret: str = Field(..., min_length=1, description="Token signing secret")
    jwt_expires_in: timedelta = Field(timedelta(hours=24), description="Token lifetime, e.g. '24h'")
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    bcrypt_rounds: int = Field(12, ge=4, le=16)

    # Remote providers
    fal_key: str = Field(..., min_length=1, description="fal.ai API key (speech-to-text)")
    openai_api_key: str = Field(..., min_length=1, description="OpenAI API key (extraction)")
    openai_model: str = "gpt-4o-mini"
    openai_whisper_model: str = "whisper-1"
    extraction_temperature: float = Field(0.1, ge=0.0, le=2.0)
    whisper_version: str = "3"

    # Uploads
    max_upload_size_mb: int = Field(50, ge=1, le=1000)
    allowed_mime_types: str = (
        "audio/mpeg,audio/wav,audio/mp3,audio/mp4,audio/m4a,audio/webm,audio/flac"
    )

    # Rate limiting
    rate_limit_window_minutes: float = Field(1, gt=0)
    rate_limit_max_requests: int = Field(5, ge=1)

    # Batch extraction
    batch_max_items: int = Field(10, ge=1)
    batch_chunk_size: int = Field(3, ge=1)
    batch_delay_seconds: float = Field(1.0, ge=0.0)

    # API Configuration
    host: str = "0.0.0.0"
    port: int = Field(3000, ge=1, le=65535)
    reload: bool = False
    environment: Literal["development", "production", "test"] = "development"
    frontend_url: str = "http://localhost:3000"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("jwt_expires_in", mode="before")
    @classmethod
    def parse_duration(cls, v):
        """Accept '24h', '30m', '7d', '3600s' or bare seconds."""
        if isinstance(v, timedelta):
            return v
        if isinstance(v, (int, float)):
            return timedelta(seconds=v)
        match = _DURATION_PATTERN.match(str(v).lower())
        if not match:
            raise ValueError(f"Invalid duration: {v!r}")
        amount, unit = match.groups()
        return timedelta(seconds=float(amount) * _DURATION_UNITS[unit])

    @field_validator("allowed_mime_types")
    @classmethod
    def parse_mime_types(cls, v: str) -> set[str]:
        """Convert comma-separated mime types to set."""
        return {mime.strip().lower() for mime in v.split(",") if mime.strip()}

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes."""
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def rate_limit_window_seconds(self) -> float:
        return self.rate_limit_window_minutes * 60

    @property
    def cors_origins(self) -> list[str]:
        if self.environment == "production":
            return [self.frontend_url]
        return ["*"]


# Global settings instance
settings = Settings()
