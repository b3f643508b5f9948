"""Adjudicator backend selection."""

from __future__ import annotations

import logging

from tfscore.config import EngineSettings
from tfscore.llm.client import LLMClient

logger = logging.getLogger(__name__)


def build_adjudicator_client(settings: EngineSettings | None = None) -> LLMClient | None:
    """Build the adjudicator client based on configuration.

    Reads TFSCORE_ADJUDICATOR_BACKEND (default: none) when no settings are given.
    Fail-closed: raises ValueError if the anthropic backend is selected but the
    key is missing.

    Args:
        settings: Resolved settings; read from the environment when omitted.

    Returns:
        An LLMClient instance, or None when only deterministic strategies should run.

    Raises:
        ValueError: If TFSCORE_ADJUDICATOR_BACKEND=anthropic but ANTHROPIC_API_KEY is unset.
    """
    settings = settings or EngineSettings.from_env()

    if settings.adjudicator_backend == "anthropic":
        from tfscore.llm.anthropic_client import AnthropicLLMClient

        logger.info("Using anthropic adjudicator backend")
        return AnthropicLLMClient(
            model=settings.anthropic_model,
            timeout_seconds=settings.adjudicator_timeout_seconds,
        )

    logger.info("No adjudicator backend configured; keyword evaluation only")
    return None
