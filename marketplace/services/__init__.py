"""
Marketplace Service Layer

Shared service-layer foundation: the ServiceResult pattern, BaseService and
the error codes every marketplace and settlement service reports.

The services themselves live with their domain:
- marketplace.cart.domain.services: CartService, CartPartitioner
- marketplace.ordering.domain.services: CheckoutService, OrderService, NotificationDispatcher
- payment_system.domain.services: FeePolicy, CurrencyNormalizer, PaymentGatewayAdapter, SettlementService

Usage:
    from infrastructure.container import container

    result = container.checkout_service().checkout(None, buyer_id, shipping_info)

    if result.ok:
        order_ids = result.value.order_ids
    else:
        error = result.error
"""

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok

__all__ = [
    # Base classes
    "BaseService",
    "ServiceResult",
    # Helper functions
    "service_ok",
    "service_err",
    # Error codes
    "ErrorCodes",
]
