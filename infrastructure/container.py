"""
Dependency Injection Container
================================

Simple service locator pattern for managing infrastructure and domain
service dependencies. Infrastructure services are reached through their
abstract interfaces; the concrete backend comes from settings.INFRASTRUCTURE.

Usage:
    from infrastructure.container import container

    payment = container.payment()
    result = container.checkout_service().checkout(None, buyer_id, shipping_info)
"""

import logging
from typing import Optional

from .email import EmailFactory, EmailServiceInterface
from .notifications import NotificationFactory, NotificationServiceInterface
from .payments import PaymentFactory, PaymentProviderInterface

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Service container for infrastructure and domain services.

    Implements lazy initialization and caching of service instances.
    Singleton.
    """

    _instance: Optional["ServiceContainer"] = None
    _initialized: bool = False

    def __new__(cls):
        """Ensure only one instance exists (singleton pattern)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize container (only once)."""
        if not self._initialized:
            self._clear()
            self._initialized = True
            logger.info("Service container initialized")

    def _clear(self):
        self._email: Optional[EmailServiceInterface] = None
        self._payment: Optional[PaymentProviderInterface] = None
        self._notifications: Optional[NotificationServiceInterface] = None

        # Domain Services
        self._fee_policy = None
        self._currency_normalizer = None
        self._payment_gateway = None
        self._settlement_service = None
        self._notification_dispatcher = None
        self._cart_service = None
        self._checkout_service = None
        self._order_service = None

    # ------------------------------------------------------------------
    # Infrastructure
    # ------------------------------------------------------------------

    def email(self, backend: Optional[str] = None) -> EmailServiceInterface:
        """
        Get email service instance.

        Args:
            backend: Email backend type ('smtp' or 'mock').
                     If None, uses configuration from settings
        """
        if self._email is None or backend is not None:
            self._email = EmailFactory.create(backend)
            logger.debug(f"Created email service: {type(self._email).__name__}")

        return self._email

    def payment(self, backend: Optional[str] = None) -> PaymentProviderInterface:
        """
        Get payment provider instance.

        Args:
            backend: Payment backend type ('stripe' or 'mock').
                     If None, uses configuration from settings
        """
        if self._payment is None or backend is not None:
            self._payment = PaymentFactory.create(backend)
            logger.debug(f"Created payment service: {type(self._payment).__name__}")

        return self._payment

    def notifications(self, backend: Optional[str] = None) -> NotificationServiceInterface:
        """
        Get notification service instance.

        Args:
            backend: Notification backend type ('email' or 'mock').
                     If None, uses configuration from settings
        """
        if self._notifications is None or backend is not None:
            self._notifications = NotificationFactory.create(backend)
            logger.debug(f"Created notification service: {type(self._notifications).__name__}")

        return self._notifications

    # ------------------------------------------------------------------
    # Domain services
    # ------------------------------------------------------------------

    def fee_policy(self):
        """Get FeePolicy built from settings."""
        if self._fee_policy is None:
            from payment_system.domain.services import FeePolicy

            self._fee_policy = FeePolicy.from_settings()
            logger.debug("Created FeePolicy")
        return self._fee_policy

    def currency_normalizer(self):
        """Get CurrencyNormalizer instance."""
        if self._currency_normalizer is None:
            from payment_system.domain.services import CurrencyNormalizer

            self._currency_normalizer = CurrencyNormalizer()
            logger.debug("Created CurrencyNormalizer")
        return self._currency_normalizer

    def payment_gateway(self):
        """Get PaymentGatewayAdapter instance."""
        if self._payment_gateway is None:
            from payment_system.domain.services import PaymentGatewayAdapter

            self._payment_gateway = PaymentGatewayAdapter(provider=self.payment())
            logger.debug("Created PaymentGatewayAdapter")
        return self._payment_gateway

    def settlement_service(self):
        """Get SettlementService instance."""
        if self._settlement_service is None:
            from payment_system.domain.services import SettlementService

            self._settlement_service = SettlementService(fee_policy=self.fee_policy())
            logger.debug("Created SettlementService")
        return self._settlement_service

    def notification_dispatcher(self):
        """Get NotificationDispatcher instance."""
        if self._notification_dispatcher is None:
            from marketplace.ordering.domain.services import NotificationDispatcher

            self._notification_dispatcher = NotificationDispatcher(notification_service=self.notifications())
            logger.debug("Created NotificationDispatcher")
        return self._notification_dispatcher

    def cart_service(self):
        """Get CartService instance."""
        if self._cart_service is None:
            from marketplace.cart.domain.services import CartService

            self._cart_service = CartService()
            logger.debug("Created CartService")
        return self._cart_service

    def checkout_service(self):
        """Get CheckoutService instance."""
        if self._checkout_service is None:
            from marketplace.ordering.domain.services import CheckoutService

            self._checkout_service = CheckoutService(
                cart_service=self.cart_service(),
                currency_normalizer=self.currency_normalizer(),
                payment_gateway=self.payment_gateway(),
                settlement_service=self.settlement_service(),
                notification_dispatcher=self.notification_dispatcher(),
            )
            logger.debug("Created CheckoutService")
        return self._checkout_service

    def order_service(self):
        """Get OrderService instance."""
        if self._order_service is None:
            from marketplace.ordering.domain.services import OrderService

            self._order_service = OrderService()
            logger.debug("Created OrderService")
        return self._order_service

    def reset(self):
        """
        Reset all cached service instances.

        Useful for testing or when switching between environments.
        """
        self._clear()
        logger.info("Service container reset")

    def configure_for_testing(self):
        """
        Configure container with mock infrastructure for testing.

        Sets up:
            - Mock email service
            - Mock payment provider
            - Mock notification service
        """
        self.reset()
        self._email = EmailFactory.create("mock")
        self._payment = PaymentFactory.create("mock")
        self._notifications = NotificationFactory.create("mock")
        logger.info("Service container configured for testing")


# Global singleton instance
container = ServiceContainer()


# Convenience functions for quick access
def get_email() -> EmailServiceInterface:
    """Get email service from global container."""
    return container.email()


def get_payment() -> PaymentProviderInterface:
    """Get payment provider from global container."""
    return container.payment()


def get_notifications() -> NotificationServiceInterface:
    """Get notification service from global container."""
    return container.notifications()
