"""
Payment Provider Factory
=========================

Factory pattern for creating payment provider instances based on configuration.
"""

import logging
from typing import Literal

from django.conf import settings

from .interface import PaymentProviderInterface
from .mock_provider import MockPaymentProvider
from .stripe_provider import StripeProvider

logger = logging.getLogger(__name__)

PaymentBackend = Literal["stripe", "mock"]


class PaymentFactory:
    """
    Factory for creating payment provider instances.

    Usage:
        # In settings.py
        INFRASTRUCTURE = {"PAYMENT_PROVIDER": "stripe"}  # or 'mock' for testing

        # In your code
        payment_provider = PaymentFactory.create()
    """

    @staticmethod
    def create(backend: PaymentBackend | None = None) -> PaymentProviderInterface:
        """
        Create a payment provider instance.

        Args:
            backend: Payment backend type ('stripe' or 'mock')
                    If None, reads from settings.INFRASTRUCTURE["PAYMENT_PROVIDER"]

        Returns:
            PaymentProviderInterface implementation

        Raises:
            ValueError: If backend type is invalid
        """
        # Use provided backend or fall back to settings
        backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("PAYMENT_PROVIDER", "stripe")

        logger.info(f"Creating payment provider: {backend_type}")

        if backend_type == "stripe":
            return StripeProvider()
        elif backend_type == "mock":
            return MockPaymentProvider()
        else:
            raise ValueError(f"Invalid payment provider: {backend_type}. Must be 'stripe' or 'mock'")

    @staticmethod
    def create_stripe() -> StripeProvider:
        """
        Create Stripe payment provider explicitly.

        Returns:
            StripeProvider instance
        """
        return StripeProvider()
