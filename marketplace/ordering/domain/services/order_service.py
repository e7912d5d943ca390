"""
OrderService - Settled Order Reads and Fulfilment Status

Orders are only ever created by settlement. After that the one thing that
changes is ``status``, moved by the seller along the fulfilment path:

    pending-approval -> shipped -> delivered
    pending-approval -> cancelled
"""

import logging
from typing import List, Optional

from django.utils import timezone

from infrastructure.observability import tracer
from marketplace.ordering.domain.models import Order
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok


logger = logging.getLogger(__name__)


class OrderService(BaseService):
    """
    Service for reading orders and moving them through fulfilment.
    """

    @staticmethod
    def _visible_to(order: Order, actor_id: str) -> bool:
        return str(actor_id) in (order.buyer_id, order.seller_id)

    @BaseService.log_performance
    def get_order(self, order_id: str, actor_id: str) -> ServiceResult[Order]:
        """
        Get order details (buyer or seller of the order only).

        Example:
            >>> result = order_service.get_order(order_id, buyer_id)
            >>> if result.ok:
            ...     order = result.value
        """
        try:
            order = Order.objects.prefetch_related("items").get(id=order_id)
        except Order.DoesNotExist:
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

        if not self._visible_to(order, actor_id):
            return service_err(ErrorCodes.NOT_ORDER_OWNER, "You are not the buyer or seller of this order")

        return service_ok(order)

    @BaseService.log_performance
    def list_orders(
        self, actor_id: str, role: str = "buyer", status: Optional[str] = None
    ) -> ServiceResult[List[Order]]:
        """
        List the actor's orders as buyer or as seller, newest first.

        Args:
            actor_id: Buyer or seller id
            role: "buyer" or "seller"
            status: Optional status filter
        """
        if role not in ("buyer", "seller"):
            return service_err(ErrorCodes.INVALID_INPUT, f"Unknown role: {role}")
        if status and status not in Order.STATUS_TRANSITIONS:
            return service_err(ErrorCodes.INVALID_INPUT, f"Unknown status: {status}")

        queryset = Order.objects.prefetch_related("items").filter(**{f"{role}_id": str(actor_id)})
        if status:
            queryset = queryset.filter(status=status)

        return service_ok(list(queryset.order_by("-created_at", "id")))

    @BaseService.log_performance
    def list_checkout_orders(self, checkout_id: str, buyer_id: str) -> ServiceResult[List[Order]]:
        """All seller orders of one of the buyer's checkouts."""
        orders = list(
            Order.objects.prefetch_related("items").filter(checkout_id=checkout_id, buyer_id=str(buyer_id)).order_by("id")
        )
        if not orders:
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"No orders for checkout {checkout_id}")
        return service_ok(orders)

    @BaseService.log_performance
    def update_status(self, order_id: str, new_status: str, actor_id: str) -> ServiceResult[Order]:
        """
        Move an order to its next fulfilment status (seller only).

        The write is conditional on the status that was read, so two
        concurrent updates cannot both apply.
        """
        with tracer.start_as_current_span("order_update_status") as span:
            span.set_attribute("order.id", order_id)
            span.set_attribute("order.new_status", new_status)

            try:
                order = Order.objects.get(id=order_id)
            except Order.DoesNotExist:
                return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

            if order.seller_id != str(actor_id):
                return service_err(ErrorCodes.PERMISSION_DENIED, "Only the seller can update this order")

            if new_status not in Order.STATUS_TRANSITIONS:
                return service_err(ErrorCodes.INVALID_INPUT, f"Unknown status: {new_status}")

            if not order.can_transition_to(new_status):
                return service_err(
                    ErrorCodes.INVALID_ORDER_STATE, f"Cannot move order from {order.status} to {new_status}"
                )

            updated = Order.objects.filter(id=order_id, status=order.status).update(
                status=new_status, updated_at=timezone.now()
            )
            if updated != 1:
                return service_err(ErrorCodes.INVALID_ORDER_STATE, "Order status changed concurrently, reload it")

            self.logger.info(f"Order {order_id}: {order.status} -> {new_status} by seller {actor_id}")
            order.refresh_from_db()
            return service_ok(order)
