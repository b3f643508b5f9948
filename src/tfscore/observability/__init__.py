"""OpenTelemetry tracing for assessment units."""

from tfscore.observability.tracing import configure_tracing, unit_span

__all__ = ["configure_tracing", "unit_span"]
