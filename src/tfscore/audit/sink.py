"""Audit event sinks for assessment runs.

Every assessment emits lifecycle events (started, unit failed, completed or
failed) to an AuditSink. Sinks are append-only and fail closed: any
serialization or IO failure raises AuditSinkError.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

AUDIT_LOG_PATH_ENV = "TFSCORE_AUDIT_LOG_PATH"


class AuditSinkError(Exception):
    """Raised when audit event emission fails."""


@runtime_checkable
class AuditSink(Protocol):
    """Append-only destination for audit events."""

    def emit(self, event: dict[str, Any]) -> None:
        """Emit an audit event.

        Raises:
            AuditSinkError: If emission fails for any reason.
        """
        ...


def _serialize(event: dict[str, Any]) -> str:
    try:
        return json.dumps(event, sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise AuditSinkError(f"Failed to serialize audit event: {e}") from e


class JsonlFileAuditSink:
    """Append-only JSONL file sink.

    One line per event, sorted keys and minimal separators. Parent
    directories are created on first write; existing content is never
    truncated.
    """

    def __init__(self, file_path: str | Path) -> None:
        self._file_path = Path(file_path)
        self._lock = threading.Lock()

    @property
    def file_path(self) -> Path:
        """Return the configured file path."""
        return self._file_path

    def _ensure_parent_directory(self) -> None:
        parent = self._file_path.parent
        if not parent.exists():
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise AuditSinkError(f"Failed to create audit log directory {parent}: {e}") from e

    def emit(self, event: dict[str, Any]) -> None:
        """Append an event to the JSONL file.

        Raises:
            AuditSinkError: If serialization or the file write fails.
        """
        line = _serialize(event) + "\n"
        self._ensure_parent_directory()
        with self._lock:
            try:
                with open(self._file_path, mode="a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as e:
                raise AuditSinkError(
                    f"Failed to write audit event to {self._file_path}: {e}"
                ) from e


class InMemoryAuditSink:
    """In-memory sink; events are kept as JSON-normalized dicts. Thread-safe."""

    def __init__(self) -> None:
        self._events: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def emit(self, event: dict[str, Any]) -> None:
        """Store an event in memory.

        Raises:
            AuditSinkError: If the event is not JSON-serializable.
        """
        normalized = json.loads(_serialize(event))
        with self._lock:
            self._events.append(normalized)

    @property
    def events(self) -> list[dict[str, Any]]:
        """Return all emitted events."""
        with self._lock:
            return list(self._events)

    def event_types(self) -> list[str]:
        """Return the event_type of every emitted event, in order."""
        return [str(e.get("event_type")) for e in self.events]

    def clear(self) -> None:
        """Clear all stored events."""
        with self._lock:
            self._events.clear()


def get_audit_sink(file_path: str | None = None) -> AuditSink:
    """Return the configured audit sink.

    Args:
        file_path: Explicit JSONL path; TFSCORE_AUDIT_LOG_PATH is read when omitted.

    Returns:
        JsonlFileAuditSink when a path is configured, otherwise InMemoryAuditSink.
    """
    path = file_path or os.environ.get(AUDIT_LOG_PATH_ENV, "").strip()
    if path:
        logger.debug("Audit events written to %s", path)
        return JsonlFileAuditSink(path)
    return InMemoryAuditSink()
