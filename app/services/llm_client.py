"""OpenAI chat completion client configured for structured JSON output."""

import logging
import time

import openai
from openai import AsyncOpenAI

from app.exceptions import ExtractionFailedError, ProviderRateLimitError
from app.types import CompletionResponse

logger = logging.getLogger(__name__)


class OpenAICompletionClient:
    """Low-temperature, JSON-mode completions."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.1,
        client=None
    ):
        """
        Initialize the completion client.

        Args:
            api_key: OpenAI API key
            model: Chat model to use for extraction
            temperature: Sampling temperature (low for consistent extractions)
            client: Optional preconfigured AsyncOpenAI client
        """
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature

    async def complete(self, system_prompt: str, prompt: str) -> CompletionResponse:
        """
        Request a JSON object completion.

        Raises:
            ProviderRateLimitError: If OpenAI throttled the request
            ExtractionFailedError: On any other API error or an empty response
        """
        start = time.perf_counter()
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"}
            )
        except openai.RateLimitError as e:
            logger.warning(f"OpenAI rate limit hit: {e}")
            raise ProviderRateLimitError(
                "Rate limit exceeded for extraction service",
                original_error=e
            )
        except openai.OpenAIError as e:
            logger.error(f"OpenAI completion failed: {e}")
            raise ExtractionFailedError(f"Extraction provider error: {e}", original_error=e)

        logger.info(f"OpenAI completion finished in {time.perf_counter() - start:.2f}s")

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ExtractionFailedError("No response from extraction model")

        usage = response.usage
        return CompletionResponse(
            text=content,
            prompt_tokens=usage.prompt_tokens if usage else None,
            completion_tokens=usage.completion_tokens if usage else None,
            total_tokens=usage.total_tokens if usage else None
        )
