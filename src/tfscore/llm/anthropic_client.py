"""Anthropic adjudicator client implementing the LLMClient protocol.

Uses the Anthropic Python SDK to call Claude models. Provider-agnostic
from the caller's perspective: only the LLMClient.call() interface is exposed.

Configuration via environment variables:
- ANTHROPIC_API_KEY: Required. Fail-closed if missing.
- TFSCORE_ANTHROPIC_MODEL: Model identifier (default: claude-sonnet-4-20250514).
- TFSCORE_ADJUDICATOR_TIMEOUT_SECONDS: Per-request timeout (default: 30).

A call that fails or times out is never retried; the caller falls back to
its deterministic strategy instead.
"""

from __future__ import annotations

import logging
import os

import anthropic

from tfscore.llm.client import AdjudicationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_TIMEOUT_SECONDS = 30.0
MAX_TOKENS = 2048


class AnthropicLLMClient:
    """Anthropic-backed adjudicator client.

    Temperature is fixed at 0. SDK-level retries are disabled so that one
    unit never blocks longer than the configured timeout.

    Fail-closed: raises ValueError if ANTHROPIC_API_KEY is not set.
    """

    def __init__(
        self,
        *,
        model: str | None = None,
        timeout_seconds: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        """Initialize the Anthropic client.

        Args:
            model: Model identifier override. Falls back to TFSCORE_ANTHROPIC_MODEL,
                then DEFAULT_MODEL.
            timeout_seconds: Request timeout override.
            max_tokens: Maximum output tokens per request.

        Raises:
            ValueError: If ANTHROPIC_API_KEY is not set in the environment.
        """
        api_key = os.environ.get("ANTHROPIC_API_KEY", "")
        if not api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY environment variable is required "
                "when using the Anthropic backend. "
                "Set TFSCORE_ADJUDICATOR_BACKEND=none to use keyword evaluation only."
            )

        self._model = model or os.environ.get("TFSCORE_ANTHROPIC_MODEL", DEFAULT_MODEL)
        self._max_tokens = max_tokens or MAX_TOKENS
        self._timeout = timeout_seconds or DEFAULT_TIMEOUT_SECONDS
        self._client: anthropic.Anthropic = anthropic.Anthropic(
            api_key=api_key,
            timeout=self._timeout,
            max_retries=0,
        )

    @property
    def model(self) -> str:
        return self._model

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    def call(self, prompt: str, *, json_mode: bool = False) -> str:
        """Make one adjudicator call and return the raw response text.

        Args:
            prompt: The full prompt text to send.
            json_mode: If True, instruct the model to return JSON.

        Returns:
            Raw response string from the model.

        Raises:
            AdjudicationError: On any transport, status, or timeout failure.
        """
        system = ""
        if json_mode:
            system = (
                "You MUST respond with valid JSON only. No markdown, no explanation, "
                "no code fences. Output raw JSON."
            )

        messages: list[anthropic.types.MessageParam] = [{"role": "user", "content": prompt}]

        try:
            response = self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                temperature=0,
                system=system,
                messages=messages,
            )
        except anthropic.APITimeoutError as exc:
            logger.warning("Anthropic request timed out after %.1fs", self._timeout)
            raise AdjudicationError("Adjudicator request timed out") from exc
        except anthropic.APIStatusError as exc:
            logger.warning("Anthropic API error %d", exc.status_code)
            raise AdjudicationError(f"Adjudicator API error: {exc.status_code}") from exc
        except anthropic.APIConnectionError as exc:
            logger.warning("Anthropic connection error: %s", exc)
            raise AdjudicationError("Adjudicator connection failed") from exc

        if not response.content:
            raise AdjudicationError("Adjudicator returned an empty response")
        text_block = response.content[0]
        if hasattr(text_block, "text"):
            return str(text_block.text)
        return str(text_block)
