"""Anthropic API engine — single-shot completions for extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from recap.engines.base import EngineResponse
from recap.errors import ExtractionError

logger = logging.getLogger(__name__)


@dataclass
class AnthropicAPIEngine:
    """Direct Anthropic API via the `anthropic` SDK. Pure completion, no tools."""

    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 4096
    timeout: int = 120

    def __post_init__(self) -> None:
        try:
            import anthropic

            self._api_error = anthropic.APIError
            self._client = anthropic.Anthropic(timeout=self.timeout)
        except ImportError:
            raise ImportError(
                "anthropic package required. Install with: pip install 'recap[api]'"
            )

    @property
    def name(self) -> str:
        return "anthropic_api"

    def send(self, message: str, *, system_prompt: str | None = None) -> EngineResponse:
        kwargs: dict = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": message}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = self._client.messages.create(**kwargs)
        except self._api_error as e:
            logger.error("Anthropic API error: %s", e)
            raise ExtractionError(f"Anthropic API error: {e}") from e

        text = response.content[0].text if response.content else ""
        cost = None
        if response.usage:
            # Approximate cost (Sonnet pricing)
            cost = (response.usage.input_tokens * 3 + response.usage.output_tokens * 15) / 1e6

        return EngineResponse(text=text, cost_usd=cost, model=response.model)
