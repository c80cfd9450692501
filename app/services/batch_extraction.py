"""Batch extraction over several transcripts with bounded concurrency."""

import logging
from typing import List, Optional, Sequence

from app.exceptions import ValidationError
from app.models.schemas import (
    BatchItem,
    BatchItemResult,
    CustomSchema,
    ExtractionResult,
    ExtractionType,
)
from app.services.extraction import ExtractionService, expected_fields
from app.utils.concurrency import FixedDelayPacing, run_in_chunks

logger = logging.getLogger(__name__)


class BatchExtractionOrchestrator:
    """
    Runs the extraction service over an ordered batch.

    Items are dispatched in concurrent chunks of ``chunk_size``; the pacing
    policy waits between chunks to stay under the provider's rate limits.
    A failing item becomes an error entry and never stops the others.
    """

    def __init__(
        self,
        extractor: ExtractionService,
        max_items: int = 10,
        chunk_size: int = 3,
        pacing: Optional[FixedDelayPacing] = None
    ):
        self.extractor = extractor
        self.max_items = max_items
        self.chunk_size = chunk_size
        self.pacing = pacing or FixedDelayPacing(1.0)
        logger.info(
            f"BatchExtractionOrchestrator initialized "
            f"(max {max_items} items, chunks of {chunk_size}, "
            f"{self.pacing.delay_seconds}s between chunks)"
        )

    def validate_batch(
        self,
        items: Sequence[BatchItem],
        extraction_type: ExtractionType,
        custom_schema: Optional[CustomSchema] = None
    ) -> None:
        """
        Reject a batch before any item is processed.

        Raises:
            ValidationError: If the batch is empty or too large
            MissingSchemaError: For ``custom`` without a usable schema
        """
        if not items:
            raise ValidationError("Batch must contain at least one transcription")

        if len(items) > self.max_items:
            raise ValidationError(
                f"Batch size {len(items)} exceeds maximum of {self.max_items}",
                details=[{
                    "field": "transcriptions",
                    "message": f"At most {self.max_items} items are allowed",
                }]
            )

        expected_fields(extraction_type, custom_schema)

    async def extract_batch(
        self,
        items: Sequence[BatchItem],
        extraction_type: ExtractionType,
        custom_schema: Optional[CustomSchema] = None
    ) -> List[BatchItemResult]:
        """
        Extract every item, preserving input order in the result.

        Args:
            items: Ordered transcripts with caller ids
            extraction_type: Extraction type applied to every item
            custom_schema: Required for ``custom``

        Returns:
            One BatchItemResult per input item, in input order
        """
        self.validate_batch(items, extraction_type, custom_schema)
        logger.info(f"Starting batch extraction for {len(items)} transcriptions")

        async def extract_one(item: BatchItem) -> BatchItemResult:
            try:
                result = await self.extractor.extract(item.text, extraction_type, custom_schema)
                return BatchItemResult(id=item.id, result=result)
            except Exception as e:
                logger.error(f"Batch item {item.id} failed: {e}")
                return BatchItemResult(
                    id=item.id,
                    result=ExtractionResult.failed(extraction_type),
                    error=str(e) or type(e).__name__
                )

        results = await run_in_chunks(items, extract_one, self.chunk_size, self.pacing)

        failed = sum(1 for r in results if r.error)
        logger.info(f"Batch extraction finished: {len(results) - failed} succeeded, {failed} failed")
        return results
