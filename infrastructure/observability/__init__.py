"""
Observability helpers (OpenTelemetry tracing).
"""

from .tracing import add_span_attributes, get_tracer, setup_tracing, tracer

__all__ = [
    "add_span_attributes",
    "get_tracer",
    "setup_tracing",
    "tracer",
]
