"""Pydantic models for API request/response validation."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire and snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Enums
class ExtractionType(str, Enum):
    """Which field focus to request from the extraction provider."""
    REPAIR_DETAILS = "repair_details"
    PARTS_INVENTORY = "parts_inventory"
    LABOR_HOURS = "labor_hours"
    CUSTOMER_INFO = "customer_info"
    DAMAGE_ASSESSMENT = "damage_assessment"
    CUSTOM = "custom"


class TranscriptionModel(str, Enum):
    """Available speech-to-text providers."""
    FAL_WHISPER = "fal-whisper"
    OPENAI_WHISPER = "openai-whisper"


# Auth
def check_email_format(value: str) -> str:
    """Reject malformed addresses but keep the email exactly as sent."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(str(e)) from e
    return value


Email = Annotated[str, AfterValidator(check_email_format)]


class RegisterRequest(BaseModel):
    email: Email
    password: str = Field(..., min_length=8, description="At least 8 characters")
    name: str = Field(..., min_length=2, description="At least 2 characters")


class LoginRequest(BaseModel):
    email: Email
    password: str = Field(..., min_length=1)


class PublicUser(BaseModel):
    id: str
    email: str
    name: str


class AuthResponse(BaseModel):
    message: str
    token: str
    user: PublicUser


class AuthenticatedUser(CamelModel):
    """Identity attached to a request after its bearer token verifies."""
    user_id: str
    email: str


# Transcription
class TranscriptionOptions(BaseModel):
    """Options for a single transcription call."""
    language: Optional[str] = Field(None, max_length=5, description="Audio language code (e.g., 'en', 'es')")
    model: TranscriptionModel = TranscriptionModel.FAL_WHISPER
    diarization: bool = False
    want_timestamps: bool = True


class TranscriptSegment(BaseModel):
    text: str
    start: float = Field(..., description="Start time in seconds")
    end: float = Field(..., description="End time in seconds")
    speaker: Optional[str] = None


class TranscriptionResult(CamelModel):
    """Canonical transcription result, independent of provider."""
    text: str
    language: Optional[str] = None
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    segments: Optional[list[TranscriptSegment]] = None
    model: str
    word_count: int
    duration: Optional[float] = None


class UploadMetadata(CamelModel):
    file_name: str
    file_size: int
    mime_type: str
    model: TranscriptionModel
    estimated_cost: Optional[float] = Field(None, description="USD, when the audio duration is known")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TranscriptionResponse(CamelModel):
    success: bool = True
    transcription: TranscriptionResult
    metadata: UploadMetadata


# Extraction
class CustomSchema(BaseModel):
    """Caller-supplied field list overriding the default catalogue."""
    fields: list[str]
    description: str

    def is_usable(self) -> bool:
        return bool(self.description.strip()) and any(f.strip() for f in self.fields)


def _require_schema_for_custom(
    extraction_type: ExtractionType,
    custom_schema: Optional[CustomSchema]
) -> None:
    if extraction_type == ExtractionType.CUSTOM and (
        custom_schema is None or not custom_schema.is_usable()
    ):
        raise ValueError(
            "customSchema with non-empty fields and description is required "
            "for custom extraction type"
        )


class ExtractionRequest(CamelModel):
    transcription: str = Field(..., min_length=10, description="Transcript text")
    extraction_type: ExtractionType = ExtractionType.REPAIR_DETAILS
    custom_schema: Optional[CustomSchema] = None

    @model_validator(mode="after")
    def check_custom_schema(self) -> "ExtractionRequest":
        _require_schema_for_custom(self.extraction_type, self.custom_schema)
        return self


class BatchItem(BaseModel):
    id: str
    text: str = Field(..., min_length=10)


class BatchExtractionRequest(CamelModel):
    # Upper bound is enforced by the orchestrator's configured batch size.
    transcriptions: list[BatchItem] = Field(..., min_length=1)
    extraction_type: ExtractionType = ExtractionType.REPAIR_DETAILS
    custom_schema: Optional[CustomSchema] = None

    @model_validator(mode="after")
    def check_custom_schema(self) -> "BatchExtractionRequest":
        _require_schema_for_custom(self.extraction_type, self.custom_schema)
        return self


class TokenUsage(BaseModel):
    prompt: int = 0
    completion: int = 0
    total: int = 0


class ExtractionResult(CamelModel):
    success: bool
    extracted_data: dict[str, Any]
    confidence: float = Field(..., ge=0.0, le=1.0)
    extraction_type: ExtractionType
    processing_time: int = Field(..., description="Processing time in milliseconds")
    tokens: Optional[TokenUsage] = None

    @classmethod
    def failed(cls, extraction_type: ExtractionType) -> "ExtractionResult":
        return cls(
            success=False,
            extracted_data={},
            confidence=0.0,
            extraction_type=extraction_type,
            processing_time=0
        )


class BatchItemResult(BaseModel):
    id: str
    result: ExtractionResult
    error: Optional[str] = None


class ExtractionMetadata(CamelModel):
    extraction_type: ExtractionType
    transcription_length: int
    user_id: str
    estimated_cost: float
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ExtractionResponse(CamelModel):
    success: bool = True
    extracted_data: ExtractionResult
    metadata: ExtractionMetadata


class BatchMetadata(CamelModel):
    extraction_type: ExtractionType
    batch_size: int
    failed: int
    user_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class BatchExtractionResponse(CamelModel):
    success: bool = True
    results: list[BatchItemResult]
    metadata: BatchMetadata


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    details: Optional[list[Any]] = Field(None, description="Per-field violations")

    @field_validator("details")
    @classmethod
    def drop_empty_details(cls, v: Optional[list[Any]]) -> Optional[list[Any]]:
        return v or None
