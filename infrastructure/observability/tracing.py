"""
OpenTelemetry Distributed Tracing

Configures OpenTelemetry for tracing checkout and settlement.
Spans are exported over OTLP/HTTP to a collector (Jaeger, Tempo, ...).
"""

import logging
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.django import DjangoInstrumentor
from opentelemetry.instrumentation.requests import RequestsInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)

_tracer: Optional[trace.Tracer] = None
_initialized = False


def setup_tracing(
    service_name: str = "foremade-backend",
    otlp_endpoint: str = "http://localhost:4318/v1/traces",
    enable: bool = True,
) -> None:
    """
    Initialize OpenTelemetry tracing with an OTLP exporter.

    Args:
        service_name: Name of the service for tracing
        otlp_endpoint: OTLP/HTTP traces endpoint of the collector
        enable: Enable/disable tracing

    Example:
        setup_tracing(
            service_name="foremade-backend",
            otlp_endpoint="http://otel-collector:4318/v1/traces",
        )
    """
    global _initialized

    if _initialized:
        logger.warning("Tracing already initialized. Skipping.")
        return

    if not enable:
        logger.info("Tracing disabled via configuration")
        return

    resource = Resource(attributes={SERVICE_NAME: service_name})

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    trace.set_tracer_provider(tracer_provider)
    logger.info(f"OTLP tracing configured: {otlp_endpoint}")

    # Auto-instrument Django (traces all HTTP requests)
    DjangoInstrumentor().instrument()

    # Auto-instrument requests library (traces outgoing HTTP calls, including Stripe)
    RequestsInstrumentor().instrument()

    _initialized = True
    logger.info(f"OpenTelemetry tracing initialized for service: {service_name}")


def get_tracer(name: str = "foremade") -> trace.Tracer:
    """
    Get tracer instance for creating custom spans.

    Works before setup_tracing() runs; spans become real once a provider is set.

    Example:
        with get_tracer().start_as_current_span("my_operation"):
            pass
    """
    global _tracer

    if _tracer is None:
        _tracer = trace.get_tracer(name)

    return _tracer


def add_span_attributes(span: trace.Span, **attributes) -> None:
    """
    Add custom attributes to a span.

    Example:
        with tracer.start_as_current_span("checkout") as span:
            add_span_attributes(span, checkout_id="chk_1", sellers=2)
    """
    for key, value in attributes.items():
        span.set_attribute(key, str(value))


tracer = get_tracer()
