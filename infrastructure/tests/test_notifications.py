"""
Notification Infrastructure Tests
=================================

Unit tests for templated notification delivery.
"""

from django.test import TestCase, override_settings

from infrastructure.email import EmailDeliveryException, EmailRejectedException, MockEmailService
from infrastructure.notifications import (
    EmailNotificationService,
    MockNotificationService,
    NotificationFactory,
    NotificationRejectedException,
    NotificationTransientException,
)


def confirmation_data(**overrides):
    data = {
        "order_id": "chk_1-S1",
        "checkout_id": "chk_1",
        "buyer_name": "Ada Buyer",
        "items": [{"product_name": "Lamp", "quantity": 1, "unit_price": "2000.00", "total_price": "2000.00"}],
        "total": "2000.00",
        "currency": "NGN",
        "payment_reference": "pi_test_1",
        "shipping": {"name": "Ada Buyer", "address": "1 Marina Road", "city": "Lagos", "country": "NG"},
    }
    data.update(overrides)
    return data


class EmailNotificationServiceTest(TestCase):
    def setUp(self):
        self.email = MockEmailService()
        self.service = EmailNotificationService(email_service=self.email)

    def test_renders_order_confirmation(self):
        self.assertTrue(self.service.send("ada@example.com", "order_confirmation", confirmation_data()))

        message = self.email.get_last_message()
        self.assertEqual(message.to, ["ada@example.com"])
        self.assertEqual(message.subject, "Order confirmed: chk_1-S1")
        self.assertIn("1 x Lamp", message.body)
        self.assertIn("Payment reference: pi_test_1", message.body)
        self.assertIn("<strong>chk_1-S1</strong>", message.html_body)

    def test_subject_is_single_line(self):
        message = self.service.render("order_confirmation", confirmation_data())

        self.assertNotIn("\n", message.subject)

    def test_unknown_template_is_rejected(self):
        with self.assertRaises(NotificationRejectedException):
            self.service.send("ada@example.com", "no_such_template", {})

        self.assertEqual(self.email.attempts, 0)

    def test_email_delivery_failure_is_transient(self):
        self.email.fail_next(EmailDeliveryException("smtp down"))

        with self.assertRaises(NotificationTransientException):
            self.service.send("ada@example.com", "order_confirmation", confirmation_data())

    def test_email_rejection_is_rejected(self):
        self.email.fail_next(EmailRejectedException("recipient refused"))

        with self.assertRaises(NotificationRejectedException):
            self.service.send("ada@example.com", "order_confirmation", confirmation_data())


class MockNotificationServiceTest(TestCase):
    def test_records_and_fails_on_demand(self):
        service = MockNotificationService()
        service.fail_next(NotificationTransientException("down"))

        with self.assertRaises(NotificationTransientException):
            service.send("ada@example.com", "order_confirmation", {"order_id": "x"})
        service.send("ada@example.com", "order_confirmation", {"order_id": "x"})

        self.assertEqual(service.attempts, 2)
        self.assertEqual(service.sent, [("ada@example.com", "order_confirmation", {"order_id": "x"})])

        service.reset()
        self.assertEqual(service.sent, [])


class NotificationFactoryTest(TestCase):
    def test_create_mock(self):
        self.assertIsInstance(NotificationFactory.create("mock"), MockNotificationService)

    def test_create_email(self):
        self.assertIsInstance(NotificationFactory.create("email"), EmailNotificationService)

    @override_settings(INFRASTRUCTURE={"NOTIFICATION_BACKEND": "mock"})
    def test_create_from_settings(self):
        self.assertIsInstance(NotificationFactory.create(), MockNotificationService)

    def test_invalid_backend(self):
        with self.assertRaises(ValueError):
            NotificationFactory.create("sms")
