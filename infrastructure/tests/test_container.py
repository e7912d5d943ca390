"""
Service Container Tests
=======================
"""

from django.test import TestCase

from infrastructure.container import ServiceContainer, container, get_email, get_notifications, get_payment
from infrastructure.email import MockEmailService
from infrastructure.notifications import MockNotificationService
from infrastructure.payments import MockPaymentProvider
from marketplace.ordering.domain.services import CheckoutService, NotificationDispatcher
from payment_system.domain.services import PaymentGatewayAdapter, SettlementService


class ServiceContainerTest(TestCase):
    def setUp(self):
        container.configure_for_testing()

    def test_singleton(self):
        self.assertIs(ServiceContainer(), container)

    def test_testing_configuration_uses_mocks(self):
        self.assertIsInstance(get_email(), MockEmailService)
        self.assertIsInstance(get_payment(), MockPaymentProvider)
        self.assertIsInstance(get_notifications(), MockNotificationService)

    def test_domain_services_are_cached(self):
        self.assertIs(container.checkout_service(), container.checkout_service())
        self.assertIs(container.fee_policy(), container.settlement_service().fee_policy)

    def test_checkout_service_is_wired_to_shared_instances(self):
        checkout = container.checkout_service()

        self.assertIsInstance(checkout, CheckoutService)
        self.assertIsInstance(checkout.payment_gateway, PaymentGatewayAdapter)
        self.assertIsInstance(checkout.settlement_service, SettlementService)
        self.assertIsInstance(checkout.notification_dispatcher, NotificationDispatcher)
        self.assertIs(checkout.payment_gateway.provider, container.payment())
        self.assertIs(checkout.notification_dispatcher.notification_service, container.notifications())

    def test_reset_drops_cached_instances(self):
        first = container.checkout_service()
        container.configure_for_testing()

        self.assertIsNot(container.checkout_service(), first)

    def test_explicit_backend_replaces_instance(self):
        first = container.payment()

        self.assertIsNot(container.payment("mock"), first)
