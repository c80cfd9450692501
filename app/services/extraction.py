"""Structured field extraction from repair transcripts."""

import json
import logging
import time
from typing import List, Optional

from app.exceptions import ExtractionFailedError, MissingSchemaError
from app.models.field_catalog import (
    EXTRACTION_TYPE_DESCRIPTIONS,
    FIELD_CATALOG,
    all_fields,
)
from app.models.schemas import (
    CustomSchema,
    ExtractionResult,
    ExtractionType,
    TokenUsage,
)
from app.types import ExtractedFields, SupportsCompletion
from app.utils.helpers import elapsed_ms

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert data extraction assistant specializing in automotive "
    "repair transcriptions. Extract structured data accurately and provide "
    "confidence scores for your extractions."
)

DEFAULT_CONFIDENCE = 0.8
VALID_CONFIDENCE_THRESHOLD = 0.3


def build_extraction_prompt(
    transcription: str,
    extraction_type: ExtractionType,
    custom_schema: Optional[CustomSchema] = None
) -> str:
    """
    Build the instruction sent to the extraction model.

    The prompt quotes the transcript verbatim, lists the exact field names
    to populate, tells the model to leave unmentioned fields as empty
    strings, and asks for a numeric ``confidence`` between 0 and 1.

    Raises:
        MissingSchemaError: If ``custom`` is requested without a usable schema
    """
    lines = [
        "Extract structured data from the following automotive repair transcription. "
        "Return your response as a valid JSON object.",
        "",
        "Transcription:",
        f'"{transcription}"',
        "",
    ]

    if extraction_type == ExtractionType.CUSTOM:
        fields = expected_fields(extraction_type, custom_schema)
        lines.append("Extract the following custom fields based on this schema:")
        lines.append(f"Description: {custom_schema.description.strip()}")
        lines.append(f"Fields to extract: {', '.join(fields)}")
    else:
        lines.append(f"Focus: {EXTRACTION_TYPE_DESCRIPTIONS[extraction_type]}.")
        lines.append("Populate every one of the following fields, grouped by category:")
        for category, fields in FIELD_CATALOG.items():
            lines.append("")
            lines.append(f"{category}:")
            for field, description in fields.items():
                lines.append(f"- {field}: {description}")

    lines.append("")
    lines.append(
        "Format your response as a flat JSON object using these exact field names. "
        "If a field is not mentioned in the transcription, set it to an empty string \"\". "
        "Include a \"confidence\" field (0.0-1.0) indicating your confidence in the extraction."
    )
    return "\n".join(lines)


def expected_fields(
    extraction_type: ExtractionType,
    custom_schema: Optional[CustomSchema] = None
) -> List[str]:
    """Field names the model is asked to populate for this request."""
    if extraction_type != ExtractionType.CUSTOM:
        return all_fields()

    if custom_schema is None or not custom_schema.is_usable():
        raise MissingSchemaError("Custom schema is required for custom extraction type")

    seen = []
    for field in custom_schema.fields:
        field = field.strip()
        if field and field not in seen:
            seen.append(field)
    return seen


def validate_extraction_result(result: ExtractionResult, fields: List[str]) -> bool:
    """
    Loose plausibility check on an extraction.

    True when the extraction succeeded, at least one expected field is
    present, and confidence is above 0.3.
    """
    if not result.success or not result.extracted_data:
        return False

    has_expected = any(field in result.extracted_data for field in fields)
    return has_expected and result.confidence > VALID_CONFIDENCE_THRESHOLD


class ExtractionService:
    """Runs a single extraction against a completion provider."""

    def __init__(self, llm: SupportsCompletion):
        self.llm = llm
        logger.info("ExtractionService initialized")

    async def extract(
        self,
        transcription: str,
        extraction_type: ExtractionType,
        custom_schema: Optional[CustomSchema] = None
    ) -> ExtractionResult:
        """
        Extract structured fields from a transcript.

        Args:
            transcription: Transcript text
            extraction_type: Which focus/schema to use
            custom_schema: Required for ``custom``

        Returns:
            ExtractionResult with every expected field present (blank-filled)

        Raises:
            MissingSchemaError: Before any remote call, for ``custom`` without a schema
            ExtractionFailedError: If the provider fails or its output is not a JSON object
            ProviderRateLimitError: If the provider throttled the call
        """
        fields = expected_fields(extraction_type, custom_schema)
        prompt = build_extraction_prompt(transcription, extraction_type, custom_schema)

        start = time.perf_counter()
        logger.info(
            f"Starting {extraction_type.value} extraction "
            f"({len(transcription)} chars, {len(fields)} fields)"
        )

        completion = await self.llm.complete(SYSTEM_PROMPT, prompt)
        parsed = self.parse_fields(completion.text)
        confidence = self._pop_confidence(parsed)

        extracted = {field: parsed.pop(field, "") for field in fields}
        # Keep anything extra the model volunteered after the expected fields
        extracted.update(parsed)

        processing_time = elapsed_ms(start)
        logger.info(
            f"Extraction complete in {processing_time}ms "
            f"(confidence {confidence:.2f})"
        )

        tokens = None
        if completion.total_tokens is not None:
            tokens = TokenUsage(
                prompt=completion.prompt_tokens or 0,
                completion=completion.completion_tokens or 0,
                total=completion.total_tokens
            )

        return ExtractionResult(
            success=True,
            extracted_data=extracted,
            confidence=confidence,
            extraction_type=extraction_type,
            processing_time=processing_time,
            tokens=tokens
        )

    @staticmethod
    def parse_fields(text: str) -> ExtractedFields:
        """
        Parse provider output as a flat key -> value mapping.

        Raises:
            ExtractionFailedError: If the text is not a JSON object
        """
        try:
            parsed = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error(f"Extraction output is not valid JSON: {e}")
            raise ExtractionFailedError(
                f"Could not parse extraction output: {e}",
                original_error=e
            )

        if not isinstance(parsed, dict):
            raise ExtractionFailedError(
                f"Extraction output must be a JSON object, got {type(parsed).__name__}"
            )
        return parsed

    @staticmethod
    def _pop_confidence(parsed: ExtractedFields) -> float:
        value = parsed.pop("confidence", None)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return DEFAULT_CONFIDENCE
        return min(1.0, max(0.0, float(value)))
