"""Environment-driven engine settings.

Environment Variables:
    TFSCORE_ADJUDICATOR_BACKEND: "none" (default) or "anthropic"
    TFSCORE_ANTHROPIC_MODEL: Model identifier for the anthropic backend
    TFSCORE_ADJUDICATOR_TIMEOUT_SECONDS: Per-call timeout (default: 30)
    TFSCORE_MAX_WORKERS: Thread pool size for unit fan-out (default: 8)
    TFSCORE_AUDIT_LOG_PATH: JSONL audit log path (unset: audit events are kept in memory)
    TFSCORE_OTEL_ENABLED: Set to "1" to emit OpenTelemetry spans per unit
"""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

BACKEND_ENV = "TFSCORE_ADJUDICATOR_BACKEND"
MODEL_ENV = "TFSCORE_ANTHROPIC_MODEL"
TIMEOUT_ENV = "TFSCORE_ADJUDICATOR_TIMEOUT_SECONDS"
MAX_WORKERS_ENV = "TFSCORE_MAX_WORKERS"
AUDIT_LOG_PATH_ENV = "TFSCORE_AUDIT_LOG_PATH"
OTEL_ENABLED_ENV = "TFSCORE_OTEL_ENABLED"

VALID_BACKENDS = frozenset({"none", "anthropic"})


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no"):
        return False
    return default


def _get_env_str(key: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default).strip()


def _get_env_float(key: str, default: float) -> float:
    raw = _get_env_str(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", key, raw)
        return default


class EngineSettings(BaseModel):
    """Resolved engine configuration."""

    model_config = ConfigDict(frozen=True)

    adjudicator_backend: str = Field(default="none", description="none | anthropic")
    anthropic_model: str | None = Field(default=None, description="Model override")
    adjudicator_timeout_seconds: float = Field(default=30.0, gt=0)
    max_workers: int = Field(default=8, ge=1, le=64)
    audit_log_path: str | None = Field(default=None)
    otel_enabled: bool = Field(default=False)

    @field_validator("adjudicator_backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in VALID_BACKENDS:
            raise ValueError(
                f"Unknown adjudicator backend '{value}', expected one of {sorted(VALID_BACKENDS)}"
            )
        return normalized

    @classmethod
    def from_env(cls) -> EngineSettings:
        """Build settings from the process environment.

        Raises:
            ValueError: If TFSCORE_ADJUDICATOR_BACKEND names an unknown backend.
        """
        return cls(
            adjudicator_backend=_get_env_str(BACKEND_ENV, "none") or "none",
            anthropic_model=_get_env_str(MODEL_ENV) or None,
            adjudicator_timeout_seconds=_get_env_float(TIMEOUT_ENV, 30.0),
            max_workers=int(_get_env_float(MAX_WORKERS_ENV, 8)),
            audit_log_path=_get_env_str(AUDIT_LOG_PATH_ENV) or None,
            otel_enabled=_get_env_bool(OTEL_ENABLED_ENV, False),
        )
