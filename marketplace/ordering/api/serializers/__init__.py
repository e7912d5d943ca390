from .order_serializers import (
    CheckoutRequestSerializer,
    OrderItemSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    ShippingInfoSerializer,
)

__all__ = [
    "CheckoutRequestSerializer",
    "OrderItemSerializer",
    "OrderSerializer",
    "OrderStatusUpdateSerializer",
    "ShippingInfoSerializer",
]
