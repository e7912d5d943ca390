"""
NotificationDispatcher - Order Confirmations

Sends one order confirmation per settled seller order. Delivery is best
effort: transient failures are retried with the shared backoff policy, and a
delivery that still fails is logged and reported back as a warning flag. A
notification failure never undoes a settled order.

Malformed payloads (no usable buyer email, zero total, no items) are rejected
before the first attempt since retrying them cannot help.
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings

from infrastructure.notifications import (
    NotificationRejectedException,
    NotificationServiceInterface,
    NotificationTransientException,
)
from marketplace.infra.observability.metrics import notifications_total
from marketplace.services.base import BaseService
from payment_system.domain.exceptions import NotificationDeliveryError, NotificationPayloadError
from utils.logging_utils import mask_value
from utils.retry import bounded_retry


logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

ORDER_CONFIRMATION_TEMPLATE = "order_confirmation"


@dataclass
class OrderNotification:
    """
    Payload of one order confirmation.

    Attributes:
        order_id: Seller order id
        checkout_id: Checkout the order belongs to
        buyer_email: Recipient
        total: Order subtotal
        currency: Order currency
        items: Line snapshots (product_name, quantity, unit_price, total_price)
        buyer_name: Greeting name
        payment_reference: Processor reference of the charge
        shipping: Shipping details shown in the message
    """

    order_id: str
    checkout_id: str
    buyer_email: str
    total: Decimal
    currency: str
    items: List[Dict[str, Any]] = field(default_factory=list)
    buyer_name: str = ""
    payment_reference: str = ""
    shipping: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_order(cls, order, buyer_email: Optional[str] = None, buyer_name: Optional[str] = None):
        shipping = dict(order.shipping_details or {})
        return cls(
            order_id=order.id,
            checkout_id=order.checkout_id,
            buyer_email=buyer_email if buyer_email is not None else shipping.get("email", ""),
            buyer_name=buyer_name if buyer_name is not None else shipping.get("name", ""),
            total=order.subtotal,
            currency=order.currency,
            items=[
                {
                    "product_name": item.product_name,
                    "quantity": item.quantity,
                    "unit_price": str(item.unit_price),
                    "total_price": str(item.total_price),
                }
                for item in order.items.all()
            ],
            payment_reference=order.payment_reference,
            shipping=shipping,
        )

    def template_data(self) -> Dict[str, Any]:
        return {
            "order_id": self.order_id,
            "checkout_id": self.checkout_id,
            "buyer_name": self.buyer_name,
            "items": self.items,
            "total": str(self.total),
            "currency": self.currency,
            "payment_reference": self.payment_reference,
            "shipping": self.shipping,
        }


def is_transient_delivery_failure(exc: BaseException) -> bool:
    return isinstance(exc, NotificationTransientException)


class NotificationDispatcher(BaseService):
    """
    Best-effort order confirmation delivery.

    Args:
        notification_service: Delivery channel (defaults to the container's)
        attempts: Delivery attempts for transient failures
        base_delay: Backoff before the first retry, in seconds
    """

    def __init__(
        self,
        notification_service: Optional[NotificationServiceInterface] = None,
        attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
    ):
        super().__init__()
        if notification_service is None:
            from infrastructure.container import container

            notification_service = container.notifications()
        self.notification_service = notification_service
        self.attempts = attempts
        self.base_delay = base_delay

    @staticmethod
    def validate(notification: OrderNotification) -> None:
        """
        Raises:
            NotificationPayloadError: Listing every problem with the payload
        """
        problems = []
        if not notification.buyer_email or not EMAIL_PATTERN.match(notification.buyer_email):
            problems.append("buyer_email")
        if notification.total is None or Decimal(notification.total) <= 0:
            problems.append("total")
        if not notification.items:
            problems.append("items")
        if problems:
            raise NotificationPayloadError(
                f"Order notification {notification.order_id} is malformed: {', '.join(problems)}",
                order_id=notification.order_id,
                fields=problems,
            )

    def deliver(self, notification: OrderNotification) -> bool:
        """
        Validate and send one confirmation, retrying transient failures.

        Raises:
            NotificationPayloadError: Malformed payload (no attempt made)
            NotificationDeliveryError: Rejected, or failed on every attempt
        """
        self.validate(notification)

        retrying = bounded_retry(
            is_transient_delivery_failure,
            attempts=self.attempts,
            base_delay=self.base_delay,
            label=f"order notification {notification.order_id}",
        )
        try:
            return retrying(
                self.notification_service.send,
                notification.buyer_email,
                ORDER_CONFIRMATION_TEMPLATE,
                notification.template_data(),
            )
        except (NotificationTransientException, NotificationRejectedException) as e:
            raise NotificationDeliveryError(
                f"Confirmation for order {notification.order_id} not delivered: {e}",
                order_id=notification.order_id,
            ) from e

    def notify(self, notification: OrderNotification) -> bool:
        """
        Send one confirmation without ever raising.

        Returns:
            True if delivered, False if it was dropped (caller raises a warning)
        """
        try:
            self.deliver(notification)
        except NotificationPayloadError as e:
            notifications_total.labels(outcome="invalid").inc()
            self.logger.error(str(e))
            return False
        except NotificationDeliveryError as e:
            notifications_total.labels(outcome="failed").inc()
            self.logger.warning(f"{e} (recipient {mask_value(notification.buyer_email)})")
            return False

        notifications_total.labels(outcome="delivered").inc()
        return True

    def notify_all(self, notifications: Iterable[OrderNotification]) -> bool:
        """
        Send every confirmation, in-request or on the task queue.

        Returns:
            True when nothing needs a warning
        """
        notifications = list(notifications)
        if getattr(settings, "SETTLEMENT", {}).get("NOTIFICATIONS_ASYNC", False):
            return self._enqueue(notifications)

        delivered = [self.notify(notification) for notification in notifications]
        return all(delivered)

    def _enqueue(self, notifications: List[OrderNotification]) -> bool:
        from marketplace.tasks import send_order_notification

        all_queued = True
        for notification in notifications:
            try:
                self.validate(notification)
            except NotificationPayloadError as e:
                notifications_total.labels(outcome="invalid").inc()
                self.logger.error(str(e))
                all_queued = False
                continue

            try:
                send_order_notification.delay(
                    notification.order_id, notification.buyer_email, notification.buyer_name
                )
            except Exception as e:
                # Broker unreachable; the order stays settled
                notifications_total.labels(outcome="enqueue_failed").inc()
                self.logger.warning(f"Could not queue confirmation for order {notification.order_id}: {e}")
                all_queued = False
            else:
                notifications_total.labels(outcome="queued").inc()
        return all_queued
