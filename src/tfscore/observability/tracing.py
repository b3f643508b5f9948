"""OpenTelemetry tracing for assessment units.

Environment Variables:
    TFSCORE_OTEL_ENABLED: Set to "1" to enable tracing (default: disabled)
    TFSCORE_OTEL_SERVICE_NAME: Service name for spans (default: "tfscore")
    TFSCORE_OTEL_EXPORTER: "console" or "none" (default: "console")
    TFSCORE_OTEL_TEST_CAPTURE: Set to "1" to use an in-memory exporter for tests

Span attributes carry unit names and scores only, never document text.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan

logger = logging.getLogger(__name__)

OTEL_ENABLED_ENV = "TFSCORE_OTEL_ENABLED"
TRACER_NAME = "tfscore.engine"

_is_configured: bool = False
_test_exporter: Any = None


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


def is_tracing_enabled() -> bool:
    return _get_env_bool(OTEL_ENABLED_ENV, False)


def configure_tracing() -> bool:
    """Install a tracer provider when tracing is enabled.

    Idempotent. Configuration errors are logged and tracing stays off.

    Returns:
        True if tracing is enabled and configured, False otherwise.
    """
    global _is_configured, _test_exporter

    if not is_tracing_enabled():
        logger.debug("OpenTelemetry tracing disabled (%s not set)", OTEL_ENABLED_ENV)
        return False
    if _is_configured:
        return True

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

        service_name = _get_env_str("TFSCORE_OTEL_SERVICE_NAME", "tfscore")
        exporter_type = _get_env_str("TFSCORE_OTEL_EXPORTER", "console")
        provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

        if _get_env_bool("TFSCORE_OTEL_TEST_CAPTURE", False):
            from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
                InMemorySpanExporter,
            )

            _test_exporter = InMemorySpanExporter()
            provider.add_span_processor(SimpleSpanProcessor(_test_exporter))
            exporter_type = "in-memory"
        elif exporter_type == "console":
            provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

        trace.set_tracer_provider(provider)
        _is_configured = True
        logger.info(
            "OpenTelemetry tracing configured: service=%s, exporter=%s",
            service_name,
            exporter_type,
        )
        return True
    except Exception as e:
        logger.error("Failed to configure OpenTelemetry tracing: %s", e)
        return False


@contextmanager
def unit_span(unit: str, **attributes: Any) -> Iterator[Any]:
    """Wrap one assessment unit in a span.

    Yields the span, or None when tracing is disabled. Exceptions from the
    unit propagate after being recorded on the span.
    """
    if not is_tracing_enabled():
        yield None
        return

    from opentelemetry import trace

    tracer = trace.get_tracer(TRACER_NAME)
    with tracer.start_as_current_span(f"tfscore.unit.{unit}") as span:
        span.set_attribute("tfscore.unit", unit)
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(f"tfscore.{key}", str(value))
        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            raise


def get_test_spans() -> list[ReadableSpan]:
    """Return spans captured by the in-memory exporter (empty when not capturing)."""
    if _test_exporter is not None:
        return list(_test_exporter.get_finished_spans())
    return []


def clear_test_spans() -> None:
    if _test_exporter is not None:
        _test_exporter.clear()
