"""Response parsing helpers shared by every adjudicated strategy."""

from __future__ import annotations

import json
import math
import re
from typing import Any

from tfscore.llm.client import AdjudicationError

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)


def strip_markdown_fences(text: str) -> str:
    """Strip markdown code fences from a model response.

    Args:
        text: Raw response text, possibly wrapped in ```json ... ```.

    Returns:
        Text with fences removed.
    """
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_json_object(raw: str) -> dict[str, Any]:
    """Parse a model response into a JSON object.

    Args:
        raw: Raw response text.

    Returns:
        Parsed dict.

    Raises:
        AdjudicationError: If the response is not valid JSON or not an object.
    """
    cleaned = strip_markdown_fences(raw)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise AdjudicationError(f"Adjudicator returned invalid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise AdjudicationError(f"Expected JSON object, got {type(parsed).__name__}")
    return parsed


def require_number(data: dict[str, Any], key: str) -> float:
    """Return a required numeric field.

    Raises:
        AdjudicationError: If the field is missing, not a number, or not finite.
    """
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AdjudicationError(f"Adjudicator response missing numeric '{key}'")
    return require_finite(value, key)


def require_finite(value: float, key: str) -> float:
    """Reject NaN and infinities, which json.loads accepts.

    Raises:
        AdjudicationError: If the value is not finite.
    """
    if not math.isfinite(value):
        raise AdjudicationError(f"Adjudicator returned non-finite '{key}': {value}")
    return float(value)


def build_prompt(system_text: str, payload: dict[str, Any]) -> str:
    """Join rubric text and a deterministic JSON context payload."""
    context = json.dumps(payload, sort_keys=True, indent=2, default=str)
    return f"{system_text}\n\n---\n\nCONTEXT PAYLOAD:\n{context}"
