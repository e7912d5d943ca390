import logging

from django.apps import AppConfig


logger = logging.getLogger(__name__)


class PaymentSystemConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payment_system"
    verbose_name = "Payment System"

    def ready(self):
        """Validate fee configuration at startup; an invalid policy stops the process."""
        from payment_system.domain.services.fee_policy import FeePolicy

        policy = FeePolicy.from_settings()
        logger.info(
            f"[STARTUP] Fee policy valid: default {policy.default_rates.total} combined, "
            f"{len(policy.category_rates)} category overrides"
        )
