"""Append-only audit event logging for assessment runs."""

from tfscore.audit.sink import (
    AuditSink,
    AuditSinkError,
    InMemoryAuditSink,
    JsonlFileAuditSink,
    get_audit_sink,
)

__all__ = [
    "AuditSink",
    "AuditSinkError",
    "InMemoryAuditSink",
    "JsonlFileAuditSink",
    "get_audit_sink",
]
