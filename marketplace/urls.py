from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api.views import prometheus_metrics
from .cart.api.views import CartViewSet
from .ordering.api.views import CheckoutView, OrderViewSet

# Create the main router
router = DefaultRouter()
router.register(r"cart", CartViewSet, basename="cart")
router.register(r"orders", OrderViewSet, basename="order")

app_name = "marketplace"

urlpatterns = [
    path("checkout/", CheckoutView.as_view(), name="checkout"),
    # Main API routes
    path("", include(router.urls)),
    # Prometheus metrics endpoint
    path("metrics/", prometheus_metrics.settlement_prometheus_metrics, name="marketplace-metrics"),
]
