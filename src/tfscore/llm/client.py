"""Provider-agnostic adjudicator client interface + deterministic stubs.

LLMClient: Protocol for making adjudicator calls (provider-agnostic).
ScriptedLLMClient: Returns pre-built responses keyed by prompt marker, for tests and offline runs.
UnavailableLLMClient: Always fails, forcing the deterministic strategies.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class AdjudicationError(Exception):
    """Raised when an adjudicator call fails or returns an unusable response."""


class LLMClient(Protocol):
    """Provider-agnostic interface for adjudicator calls."""

    def call(self, prompt: str, *, json_mode: bool = False) -> str:
        """Make an adjudicator call and return the raw response text.

        Args:
            prompt: The full prompt text to send.
            json_mode: If True, request JSON-formatted output.

        Returns:
            Raw response string from the model.
        """
        ...


class ScriptedLLMClient:
    """Deterministic client that answers from a table of canned responses.

    Each entry maps a marker substring to a response. The first marker found
    in the prompt wins. Dict and list responses are serialized as JSON; an
    Exception instance is raised instead of returned. No external calls are made.
    """

    def __init__(
        self,
        responses: dict[str, Any],
        *,
        default: Any = None,
    ) -> None:
        self._responses = dict(responses)
        self._default = default
        self._lock = threading.Lock()
        self._prompts: list[str] = []

    @property
    def prompts(self) -> list[str]:
        """Return every prompt received so far."""
        with self._lock:
            return list(self._prompts)

    def call(self, prompt: str, *, json_mode: bool = False) -> str:
        """Return the scripted response for the first matching marker.

        Args:
            prompt: The full prompt text.
            json_mode: Ignored; responses are returned as scripted.

        Returns:
            Scripted response text.

        Raises:
            AdjudicationError: If no marker matches and no default is set.
        """
        with self._lock:
            self._prompts.append(prompt)

        response = self._default
        for marker, scripted in self._responses.items():
            if marker in prompt:
                response = scripted
                break

        if response is None:
            raise AdjudicationError("No scripted response for prompt")
        if isinstance(response, Exception):
            raise response
        if isinstance(response, (dict, list)):
            return json.dumps(response, sort_keys=True)
        return str(response)


class UnavailableLLMClient:
    """Client used when no adjudicator backend is configured."""

    def call(self, prompt: str, *, json_mode: bool = False) -> str:
        """Always raise AdjudicationError."""
        raise AdjudicationError("No adjudicator backend configured")
