"""
Marketplace Celery Tasks

Order confirmation delivery outside the checkout request, used when
SETTLEMENT["NOTIFICATIONS_ASYNC"] is enabled.
"""

import logging

from celery import shared_task


logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, name="send_order_notification")
def send_order_notification(self, order_id, buyer_email, buyer_name=""):
    """
    Deliver the confirmation for one settled order.

    Args:
        order_id (str): Seller order id
        buyer_email (str): Recipient
        buyer_name (str): Greeting name

    Returns:
        dict: Delivery result
    """
    from infrastructure.notifications import NotificationRejectedException
    from marketplace.models import Order
    from marketplace.ordering.domain.services.notification_dispatcher import (
        NotificationDispatcher,
        OrderNotification,
    )
    from payment_system.domain.exceptions import NotificationDeliveryError, NotificationPayloadError

    try:
        order = Order.objects.prefetch_related("items").get(id=order_id)
    except Order.DoesNotExist:
        logger.warning(f"Order {order_id} not found for confirmation")
        return {"success": False, "error": "Order not found", "order_id": order_id}

    notification = OrderNotification.from_order(order, buyer_email=buyer_email, buyer_name=buyer_name)

    try:
        NotificationDispatcher().deliver(notification)
    except NotificationPayloadError as e:
        logger.error(str(e))
        return {"success": False, "error": e.code, "order_id": order_id}
    except NotificationDeliveryError as e:
        if isinstance(e.__cause__, NotificationRejectedException):
            logger.error(f"Confirmation for order {order_id} rejected: {e}")
            return {"success": False, "error": e.code, "order_id": order_id}
        if self.request.retries >= self.max_retries:
            logger.warning(f"Giving up on confirmation for order {order_id}: {e}")
            return {"success": False, "error": e.code, "order_id": order_id}
        raise self.retry(exc=e, countdown=60 * (2**self.request.retries))

    logger.info(f"Confirmation delivered for order {order_id}")
    return {"success": True, "order_id": order_id}
