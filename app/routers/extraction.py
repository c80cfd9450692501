"""Structured extraction routes."""

import logging

from fastapi import APIRouter

from app.dependencies import (
    BatchOrchestratorDep,
    CurrentUserDep,
    ExtractionServiceDep,
)
from app.models.field_catalog import describe_schemas
from app.models.schemas import (
    BatchExtractionRequest,
    BatchExtractionResponse,
    BatchMetadata,
    ErrorResponse,
    ExtractionMetadata,
    ExtractionRequest,
    ExtractionResponse,
)
from app.utils.helpers import estimate_extraction_cost

router = APIRouter()
logger = logging.getLogger(__name__)

COMMON_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid extraction request"},
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    500: {"model": ErrorResponse, "description": "Extraction provider failed"}
}


@router.post("/extract", response_model=ExtractionResponse, responses=COMMON_RESPONSES)
async def extract(
    body: ExtractionRequest,
    user: CurrentUserDep,
    extraction_service: ExtractionServiceDep
) -> ExtractionResponse:
    """
    Extract structured repair fields from one transcript.

    Raises:
        ExtractionFailedError: If the provider fails (500)
        ProviderRateLimitError: If the provider throttled us (429)
    """
    logger.info(f"Extraction request from {user.user_id} ({body.extraction_type.value})")

    result = await extraction_service.extract(
        body.transcription,
        body.extraction_type,
        body.custom_schema
    )

    return ExtractionResponse(
        extracted_data=result,
        metadata=ExtractionMetadata(
            extraction_type=body.extraction_type,
            transcription_length=len(body.transcription),
            user_id=user.user_id,
            estimated_cost=estimate_extraction_cost(len(body.transcription))
        )
    )


@router.post("/batch", response_model=BatchExtractionResponse, responses=COMMON_RESPONSES)
async def extract_batch(
    body: BatchExtractionRequest,
    user: CurrentUserDep,
    orchestrator: BatchOrchestratorDep
) -> BatchExtractionResponse:
    """
    Extract structured fields from up to ``BATCH_MAX_ITEMS`` transcripts.

    Per-item failures are reported in that item's ``error`` and do not fail
    the request.
    """
    logger.info(f"Batch extraction request from {user.user_id}: {len(body.transcriptions)} items")

    results = await orchestrator.extract_batch(
        body.transcriptions,
        body.extraction_type,
        body.custom_schema
    )

    return BatchExtractionResponse(
        results=results,
        metadata=BatchMetadata(
            extraction_type=body.extraction_type,
            batch_size=len(body.transcriptions),
            failed=sum(1 for r in results if r.error),
            user_id=user.user_id
        )
    )


@router.get("/schemas", response_model=dict, responses={401: {"model": ErrorResponse}})
async def get_schemas(user: CurrentUserDep) -> dict:
    """Describe the extraction types and the comprehensive field catalogue."""
    return {
        "success": True,
        **describe_schemas(),
        "message": "Available extraction schemas"
    }
