"""Unit tests for ExtractionService and prompt construction."""

import pytest

from app.exceptions import ExtractionFailedError, MissingSchemaError, ProviderRateLimitError
from app.models.field_catalog import FIELD_CATALOG, all_fields
from app.models.schemas import CustomSchema, ExtractionResult, ExtractionType
from app.services.extraction import (
    DEFAULT_CONFIDENCE,
    ExtractionService,
    build_extraction_prompt,
    expected_fields,
    validate_extraction_result,
)

from conftest import FakeCompletionClient

TRANSCRIPT = "Customer Jane Doe brought in her 2018 Honda Civic, brakes squeal when stopping."

INVOICE_SCHEMA = CustomSchema(
    fields=["invoice_number", "total_due", " total_due "],
    description="Billing details mentioned on the call"
)


class TestBuildPrompt:
    """Test cases for build_extraction_prompt."""

    def test_prompt_quotes_transcript(self):
        prompt = build_extraction_prompt(TRANSCRIPT, ExtractionType.REPAIR_DETAILS)

        assert f'"{TRANSCRIPT}"' in prompt

    def test_prompt_lists_every_catalogue_field(self):
        """Test non-custom prompts name every field of every category."""
        prompt = build_extraction_prompt(TRANSCRIPT, ExtractionType.PARTS_INVENTORY)

        for category, fields in FIELD_CATALOG.items():
            assert f"{category}:" in prompt
            for field in fields:
                assert f"- {field}:" in prompt

    def test_prompt_requests_blank_fill_and_confidence(self):
        prompt = build_extraction_prompt(TRANSCRIPT, ExtractionType.LABOR_HOURS)

        assert 'empty string ""' in prompt
        assert '"confidence"' in prompt

    def test_custom_prompt_lists_only_custom_fields(self):
        prompt = build_extraction_prompt(TRANSCRIPT, ExtractionType.CUSTOM, INVOICE_SCHEMA)

        assert "Fields to extract: invoice_number, total_due" in prompt
        assert "Billing details mentioned on the call" in prompt
        assert "- vin:" not in prompt


class TestExpectedFields:
    """Test cases for expected_fields."""

    def test_catalogue_size(self):
        """Test the default catalogue covers all 47 fields once each."""
        fields = all_fields()

        assert len(fields) == 47
        assert len(set(fields)) == 47
        assert len(FIELD_CATALOG) == 6

    @pytest.mark.parametrize("extraction_type", [
        t for t in ExtractionType if t != ExtractionType.CUSTOM
    ])
    def test_non_custom_types_use_catalogue(self, extraction_type):
        assert expected_fields(extraction_type) == all_fields()

    def test_custom_fields_are_stripped_and_deduplicated(self):
        assert expected_fields(ExtractionType.CUSTOM, INVOICE_SCHEMA) == ["invoice_number", "total_due"]

    @pytest.mark.parametrize("schema", [
        None,
        CustomSchema(fields=[], description="Billing"),
        CustomSchema(fields=["  "], description="Billing"),
        CustomSchema(fields=["invoice_number"], description=" "),
    ])
    def test_custom_without_usable_schema(self, schema):
        with pytest.raises(MissingSchemaError) as exc_info:
            expected_fields(ExtractionType.CUSTOM, schema)

        assert exc_info.value.status_code == 400


class TestExtract:
    """Test cases for extract method."""

    @pytest.mark.asyncio
    async def test_extract_success(self, extraction_service, completion_client):
        """Test successful extraction with blank-filled fields."""
        # Execute
        result = await extraction_service.extract(TRANSCRIPT, ExtractionType.REPAIR_DETAILS)

        # Verify
        assert result.success is True
        assert result.extraction_type == ExtractionType.REPAIR_DETAILS
        assert result.confidence == 0.92
        assert result.extracted_data["customer_name"] == "Jane Doe"
        assert result.extracted_data["make"] == "Honda"
        assert result.extracted_data["vin"] == ""
        assert set(all_fields()) <= set(result.extracted_data)
        assert "confidence" not in result.extracted_data
        assert result.processing_time >= 0
        assert result.tokens.total == 200
        assert len(completion_client.prompts) == 1

    @pytest.mark.asyncio
    async def test_extract_custom_without_schema_makes_no_call(self, extraction_service, completion_client):
        """Test a custom extraction with no schema fails before any remote call."""
        with pytest.raises(MissingSchemaError):
            await extraction_service.extract(TRANSCRIPT, ExtractionType.CUSTOM)

        assert completion_client.prompts == []

    @pytest.mark.asyncio
    async def test_extract_custom_schema(self):
        """Test custom extraction keys the result by the custom fields."""
        # Setup
        llm = FakeCompletionClient(payload={"invoice_number": "INV-204", "confidence": 0.7})
        service = ExtractionService(llm)

        # Execute
        result = await service.extract(TRANSCRIPT, ExtractionType.CUSTOM, INVOICE_SCHEMA)

        # Verify
        assert result.extracted_data == {"invoice_number": "INV-204", "total_due": ""}
        assert result.confidence == 0.7

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"make": "Ford"},
        {"make": "Ford", "confidence": "high"},
        {"make": "Ford", "confidence": True},
        {"make": "Ford", "confidence": None},
    ])
    async def test_extract_default_confidence(self, payload):
        """Test missing or non-numeric confidence defaults to 0.8."""
        service = ExtractionService(FakeCompletionClient(payload=payload))

        result = await service.extract(TRANSCRIPT, ExtractionType.REPAIR_DETAILS)

        assert result.confidence == DEFAULT_CONFIDENCE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reported,expected", [(1.7, 1.0), (-0.2, 0.0), (1, 1.0)])
    async def test_extract_clamps_confidence(self, reported, expected):
        service = ExtractionService(FakeCompletionClient(payload={"confidence": reported}))

        result = await service.extract(TRANSCRIPT, ExtractionType.REPAIR_DETAILS)

        assert result.confidence == expected

    @pytest.mark.asyncio
    async def test_extract_keeps_extra_fields(self):
        """Test fields the model volunteers beyond the schema are kept."""
        service = ExtractionService(FakeCompletionClient(payload={"warranty": "yes"}))

        result = await service.extract(TRANSCRIPT, ExtractionType.REPAIR_DETAILS)

        assert result.extracted_data["warranty"] == "yes"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_text", ["not json at all", "[1, 2, 3]", "\"just a string\""])
    async def test_extract_unparseable_output(self, raw_text):
        """Test non-object output fails the extraction."""
        service = ExtractionService(FakeCompletionClient(raw_text=raw_text))

        with pytest.raises(ExtractionFailedError) as exc_info:
            await service.extract(TRANSCRIPT, ExtractionType.REPAIR_DETAILS)

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_extract_provider_rate_limited(self):
        """Test provider throttling propagates unchanged."""
        llm = FakeCompletionClient(error=ProviderRateLimitError("Rate limit exceeded for extraction service"))
        service = ExtractionService(llm)

        with pytest.raises(ProviderRateLimitError) as exc_info:
            await service.extract(TRANSCRIPT, ExtractionType.REPAIR_DETAILS)

        assert exc_info.value.status_code == 429


class TestValidateExtractionResult:
    """Test cases for validate_extraction_result."""

    def make_result(self, confidence=0.9, success=True, data=None):
        return ExtractionResult(
            success=success,
            extracted_data={"make": "Honda"} if data is None else data,
            confidence=confidence,
            extraction_type=ExtractionType.REPAIR_DETAILS,
            processing_time=12
        )

    def test_plausible_result(self):
        assert validate_extraction_result(self.make_result(), ["make", "model"]) is True

    def test_low_confidence(self):
        assert validate_extraction_result(self.make_result(confidence=0.3), ["make"]) is False

    def test_failed_result(self):
        assert validate_extraction_result(self.make_result(success=False), ["make"]) is False

    def test_no_expected_fields(self):
        assert validate_extraction_result(self.make_result(data={"color": "red"}), ["make"]) is False
