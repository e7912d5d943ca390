from decimal import Decimal
from unittest.mock import patch

import pytest

from infrastructure.notifications import (
    MockNotificationService,
    NotificationRejectedException,
    NotificationTransientException,
)
from marketplace.ordering.domain.services import NotificationDispatcher, OrderNotification
from marketplace.tests.factories import OrderFactory, OrderItemFactory
from payment_system.domain.exceptions import NotificationDeliveryError, NotificationPayloadError


def notification(**overrides):
    values = {
        "order_id": "chk_1-S1",
        "checkout_id": "chk_1",
        "buyer_email": "ada@example.com",
        "total": Decimal("2000.00"),
        "currency": "NGN",
        "items": [{"product_name": "Lamp", "quantity": 1, "unit_price": "2000.00", "total_price": "2000.00"}],
        "buyer_name": "Ada",
    }
    values.update(overrides)
    return OrderNotification(**values)


@pytest.mark.unit
class TestNotificationDispatcher:
    def setup_method(self):
        self.channel = MockNotificationService()
        self.dispatcher = NotificationDispatcher(notification_service=self.channel, attempts=3, base_delay=0)

    def test_delivers_order_confirmation(self):
        assert self.dispatcher.notify(notification())

        to, template, data = self.channel.sent[0]
        assert to == "ada@example.com"
        assert template == "order_confirmation"
        assert data["order_id"] == "chk_1-S1"
        assert data["total"] == "2000.00"

    def test_transient_failure_then_success(self):
        self.channel.fail_next(NotificationTransientException("smtp timeout"))

        assert self.dispatcher.notify(notification())
        assert self.channel.attempts == 2

    def test_three_failures_give_up_with_warning(self):
        self.channel.fail_next(*[NotificationTransientException("smtp timeout")] * 3)

        assert self.dispatcher.notify(notification()) is False
        assert self.channel.attempts == 3
        assert self.channel.sent == []

    def test_rejection_is_not_retried(self):
        self.channel.fail_next(NotificationRejectedException("mailbox does not exist"))

        with pytest.raises(NotificationDeliveryError):
            self.dispatcher.deliver(notification())
        assert self.channel.attempts == 1

    @pytest.mark.parametrize(
        "overrides, field",
        [
            ({"buyer_email": ""}, "buyer_email"),
            ({"buyer_email": "not-an-email"}, "buyer_email"),
            ({"total": Decimal("0")}, "total"),
            ({"items": []}, "items"),
        ],
    )
    def test_malformed_payload_is_rejected_without_attempt(self, overrides, field):
        with pytest.raises(NotificationPayloadError) as exc_info:
            self.dispatcher.deliver(notification(**overrides))

        assert field in exc_info.value.details["fields"]
        assert self.channel.attempts == 0

    def test_malformed_payload_only_warns_through_notify(self):
        assert self.dispatcher.notify(notification(items=[])) is False
        assert self.channel.attempts == 0

    def test_notify_all_reports_any_failure(self):
        self.channel.fail_next(*[NotificationTransientException("down")] * 3)

        ok = self.dispatcher.notify_all([notification(), notification(order_id="chk_1-S2")])

        assert ok is False
        assert [sent[2]["order_id"] for sent in self.channel.sent] == ["chk_1-S2"]


@pytest.mark.django_db
class TestOrderNotification:
    def test_from_order(self):
        order = OrderFactory(checkout_id="chk_1", seller_id="S1", subtotal=Decimal("2000.00"))
        OrderItemFactory(order=order, product_name="Lamp", unit_price=Decimal("2000.00"))

        payload = OrderNotification.from_order(order)

        assert payload.order_id == "chk_1-S1"
        assert payload.buyer_email == order.shipping_details["email"]
        assert payload.items[0]["product_name"] == "Lamp"
        assert payload.total == Decimal("2000.00")

    def test_explicit_recipient_wins(self):
        order = OrderFactory()

        payload = OrderNotification.from_order(order, buyer_email="other@example.com", buyer_name="Other")

        assert payload.buyer_email == "other@example.com"
        assert payload.buyer_name == "Other"


@pytest.mark.django_db
class TestAsyncNotifications:
    @pytest.fixture(autouse=True)
    def async_mode(self, settings):
        settings.SETTLEMENT = {**settings.SETTLEMENT, "NOTIFICATIONS_ASYNC": True}

    def setup_method(self):
        self.channel = MockNotificationService()
        self.dispatcher = NotificationDispatcher(notification_service=self.channel, attempts=3, base_delay=0)

    @patch("marketplace.tasks.send_order_notification.delay")
    def test_notifications_are_queued(self, mock_delay):
        assert self.dispatcher.notify_all([notification()])

        mock_delay.assert_called_once_with("chk_1-S1", "ada@example.com", "Ada")
        assert self.channel.attempts == 0

    @patch("marketplace.tasks.send_order_notification.delay", side_effect=ConnectionError("broker down"))
    def test_broker_failure_is_a_warning(self, mock_delay):
        assert self.dispatcher.notify_all([notification()]) is False

    @patch("marketplace.tasks.send_order_notification.delay")
    def test_malformed_payload_is_not_queued(self, mock_delay):
        assert self.dispatcher.notify_all([notification(buyer_email="")]) is False
        mock_delay.assert_not_called()
