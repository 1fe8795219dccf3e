"""Generative model client (Anthropic Messages API)."""

import logging

import anthropic
import httpx

from quartz_expert.config import Settings
from quartz_expert.exceptions import GenerationError

logger = logging.getLogger(__name__)


class Generator:
    """Single-shot text generation with a per-call deadline and no retries."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client = anthropic.Anthropic(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            timeout=httpx.Timeout(settings.llm_timeout, connect=10.0),
            max_retries=0,
        )

    def generate(
        self,
        prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Send one user prompt and return the concatenated text reply.

        Raises:
            GenerationError: If the API call fails or times out.
        """
        try:
            response = self.client.messages.create(
                model=self.settings.llm_model,
                max_tokens=max_tokens or self.settings.llm_max_tokens,
                temperature=(
                    temperature if temperature is not None else self.settings.llm_temperature
                ),
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error("Generation failed: %s", e)
            raise GenerationError(
                f"Generative model call failed: {e}",
                details={"model": self.settings.llm_model},
            ) from e

        # Skip thinking blocks
        parts = [
            block.text
            for block in response.content
            if getattr(block, "text", None) is not None
        ]
        return "\n".join(parts)
