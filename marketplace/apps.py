import logging

from django.apps import AppConfig


logger = logging.getLogger(__name__)


class MarketplaceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "marketplace"

    def ready(self):
        """
        Initialize OpenTelemetry tracing for checkout.
        """
        from django.conf import settings

        from infrastructure.observability import setup_tracing

        try:
            setup_tracing(
                service_name="marketplace-service",
                otlp_endpoint=getattr(settings, "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "http://localhost:4318/v1/traces"),
                enable=getattr(settings, "OTEL_TRACING_ENABLED", False),
            )
        except Exception as e:
            logger.warning(f"Failed to initialize OpenTelemetry tracing: {e}")
