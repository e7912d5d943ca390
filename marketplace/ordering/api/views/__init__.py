from .checkout_views import CheckoutView
from .order_views import OrderViewSet

__all__ = ["CheckoutView", "OrderViewSet"]
