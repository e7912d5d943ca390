from .checkout_service import CheckoutResult, CheckoutService, validate_shipping_info
from .notification_dispatcher import NotificationDispatcher, OrderNotification
from .order_service import OrderService

__all__ = [
    "CheckoutResult",
    "CheckoutService",
    "NotificationDispatcher",
    "OrderNotification",
    "OrderService",
    "validate_shipping_info",
]
