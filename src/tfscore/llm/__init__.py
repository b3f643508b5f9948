"""Adjudicator boundary: client protocol, backends, and response parsing."""

from tfscore.llm.backend import build_adjudicator_client
from tfscore.llm.client import (
    AdjudicationError,
    LLMClient,
    ScriptedLLMClient,
    UnavailableLLMClient,
)

__all__ = [
    "AdjudicationError",
    "LLMClient",
    "ScriptedLLMClient",
    "UnavailableLLMClient",
    "build_adjudicator_client",
]
