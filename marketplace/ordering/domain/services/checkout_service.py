"""
CheckoutService - Multi-Seller Checkout

Entry point for turning a buyer's cart into settled orders:

    validate shipping -> partition by seller -> fees + stock pre-check
    -> charge (once per checkout id) -> settle atomically
    -> clear cart -> send confirmations

Everything up to and including settlement either succeeds or returns a typed
error. Clearing the cart and sending confirmations happen after the orders
exist and can only produce a warning.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from django.conf import settings

from infrastructure.observability import tracer
from marketplace.cart.domain.services.cart_service import CartService
from marketplace.cart.domain.services.partition_service import CartLine, CartPartitioner
from marketplace.infra.observability.metrics import checkout_value, checkouts_total, orders_placed_total
from marketplace.ordering.domain.models import Order
from marketplace.ordering.domain.services.notification_dispatcher import NotificationDispatcher, OrderNotification
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from payment_system.domain.exceptions import MinimumPurchaseError, SettlementError, ShippingValidationError
from payment_system.domain.services.currency_normalizer import CurrencyNormalizer
from payment_system.domain.services.payment_gateway import PaymentGatewayAdapter
from payment_system.domain.services.settlement_service import SettlementService
from utils.logging_utils import masked_shipping


logger = logging.getLogger(__name__)

SHIPPING_FIELDS = ("name", "email", "phone", "address", "city", "postal_code", "country")
EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")


def validate_shipping_info(shipping_info: Optional[Mapping]) -> Dict[str, str]:
    """
    Check that every shipping field is present and the email looks like one.

    Returns:
        Cleaned shipping info (stripped strings, known fields only)

    Raises:
        ShippingValidationError: With one message per bad field
    """
    if not isinstance(shipping_info, Mapping):
        raise ShippingValidationError({"shipping_info": "Shipping information is required"})

    cleaned = {}
    errors = {}
    for field_name in SHIPPING_FIELDS:
        value = shipping_info.get(field_name)
        value = str(value).strip() if value is not None else ""
        if not value:
            errors[field_name] = "This field is required"
        cleaned[field_name] = value

    if cleaned["email"] and not EMAIL_PATTERN.match(cleaned["email"]):
        errors["email"] = "Enter a valid email address"

    if errors:
        raise ShippingValidationError(errors)
    return cleaned


@dataclass
class CheckoutResult:
    """
    Outcome of a successful checkout.

    Attributes:
        checkout_id: Idempotency token of the checkout
        order_ids: One order per seller
        notification_warning: True when a confirmation may be delayed
        already_settled: True when this call replayed an earlier settlement
        payment_reference: Processor reference of the charge
        amount_charged: Charged amount, in minor units of ``currency``
        currency: Charge currency
    """

    checkout_id: str
    order_ids: List[str] = field(default_factory=list)
    notification_warning: bool = False
    already_settled: bool = False
    payment_reference: str = ""
    amount_charged: int = 0
    currency: str = ""

    @property
    def warning(self) -> Optional[str]:
        if self.notification_warning:
            return "Order placed, confirmation email may be delayed"
        return None

    def to_dict(self) -> Dict:
        return {
            "checkout_id": self.checkout_id,
            "order_ids": list(self.order_ids),
            "already_settled": self.already_settled,
            "notification_warning": self.notification_warning,
            "warning": self.warning,
            "payment_reference": self.payment_reference,
            "amount_charged": self.amount_charged,
            "currency": self.currency,
        }


class CheckoutService(BaseService):
    """
    Service orchestrating a multi-seller checkout.

    Dependencies (all injectable, defaulting to the configured ones):
    - CartService: reads and clears the buyer's cart
    - CartPartitioner: groups lines by seller
    - CurrencyNormalizer: computes the charge amount
    - PaymentGatewayAdapter: charges the buyer once per checkout id
    - SettlementService: settles the paid checkout atomically
    - NotificationDispatcher: sends order confirmations
    """

    def __init__(
        self,
        cart_service: Optional[CartService] = None,
        partitioner: Optional[CartPartitioner] = None,
        currency_normalizer: Optional[CurrencyNormalizer] = None,
        payment_gateway: Optional[PaymentGatewayAdapter] = None,
        settlement_service: Optional[SettlementService] = None,
        notification_dispatcher: Optional[NotificationDispatcher] = None,
    ):
        super().__init__()
        self.cart_service = cart_service or CartService()
        self.partitioner = partitioner or CartPartitioner()
        self.currency_normalizer = currency_normalizer or CurrencyNormalizer()
        self.payment_gateway = payment_gateway or PaymentGatewayAdapter()
        self.settlement_service = settlement_service or SettlementService()
        self.notification_dispatcher = notification_dispatcher or NotificationDispatcher()

        config = getattr(settings, "SETTLEMENT", {})
        self.minimum_purchase = Decimal(str(config.get("MINIMUM_PURCHASE_AMOUNT", "0")))

    @staticmethod
    def new_checkout_id() -> str:
        return f"chk_{uuid.uuid4().hex}"

    @BaseService.log_performance
    def checkout(
        self,
        cart: Optional[Iterable[CartLine]],
        buyer_id: str,
        shipping_info: Mapping,
        checkout_id: Optional[str] = None,
        currency: Optional[str] = None,
        payment_method: Optional[str] = None,
    ) -> ServiceResult[CheckoutResult]:
        """
        Check out a cart.

        Args:
            cart: Cart lines; None reads the buyer's saved cart
            buyer_id: Buyer placing the checkout
            shipping_info: name, email, phone, address, city, postal_code, country
            checkout_id: Idempotency token; reuse it to re-drive an ambiguous checkout
            currency: Charge currency (defaults to the canonical currency)
            payment_method: Processor payment method token

        Returns:
            ServiceResult with CheckoutResult, or an error code from ErrorCodes
        """
        checkout_id = checkout_id or self.new_checkout_id()
        currency = (currency or self.currency_normalizer.canonical_currency).upper()

        with tracer.start_as_current_span("checkout") as span:
            span.set_attribute("checkout.id", checkout_id)
            span.set_attribute("buyer.id", str(buyer_id))

            try:
                with tracer.start_as_current_span("checkout_validate"):
                    shipping = validate_shipping_info(shipping_info)
                    if cart is None:
                        # The saved cart is cleared once settled, so a retry must replay first
                        replayed = self._replay(checkout_id, buyer_id)
                        if replayed is not None:
                            checkouts_total.labels(outcome="replayed").inc()
                            return service_ok(replayed)
                    lines = list(cart) if cart is not None else self.cart_service.get_checkout_lines(buyer_id)
                    partitions = self.partitioner.partition(lines)
                    total = sum((partition.subtotal for partition in partitions), Decimal("0"))
                    if total < self.minimum_purchase:
                        raise MinimumPurchaseError(
                            f"Minimum purchase is {self.minimum_purchase}, cart total is {total}",
                            minimum=str(self.minimum_purchase),
                            total=str(total),
                        )
                    self.settlement_service.validate(checkout_id, buyer_id, partitions)

                self.logger.info(
                    f"Checkout {checkout_id} for buyer {buyer_id}: {len(lines)} lines, "
                    f"{len(partitions)} sellers, total {total}, shipping {masked_shipping(shipping)}"
                )

                with tracer.start_as_current_span("checkout_charge"):
                    quote = self.currency_normalizer.quote(total, currency)
                    payment = self.payment_gateway.charge_once(
                        checkout_id,
                        buyer_id,
                        quote.amount_minor,
                        quote.currency,
                        metadata={"sellers": ",".join(partition.seller_id for partition in partitions)},
                        payment_method=payment_method,
                    )

                settlement = self.settlement_service.settle(
                    checkout_id,
                    buyer_id,
                    partitions,
                    payment,
                    shipping_details=shipping,
                    rounding_drift=quote.rounding_drift,
                )

            except SettlementError as e:
                checkouts_total.labels(outcome=e.code).inc()
                span.record_exception(e)
                self.logger.warning(f"Checkout {checkout_id} failed: {e.code} ({e.message})")
                return service_err(e.code, e.message)
            except Exception as e:
                checkouts_total.labels(outcome=ErrorCodes.INTERNAL_ERROR).inc()
                span.record_exception(e)
                self.logger.error(f"Checkout {checkout_id} failed unexpectedly: {e}", exc_info=True)
                return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

            # Settled: nothing below can fail the checkout
            clear_result = self.cart_service.clear_cart(buyer_id)
            if not clear_result.ok:
                self.logger.warning(f"Failed to clear cart after checkout {checkout_id}: {clear_result.error}")

            notification_warning = False
            if not settlement.already_settled:
                notification_warning = not self._send_confirmations(settlement.order_ids, shipping)
                orders_placed_total.inc(len(settlement.order_ids))
                checkout_value.observe(float(total))

            checkouts_total.labels(outcome="replayed" if settlement.already_settled else "success").inc()
            span.set_attribute("checkout.orders", len(settlement.order_ids))
            span.set_attribute("checkout.notification_warning", notification_warning)

            return service_ok(
                CheckoutResult(
                    checkout_id=checkout_id,
                    order_ids=settlement.order_ids,
                    notification_warning=notification_warning,
                    already_settled=settlement.already_settled,
                    payment_reference=payment.reference,
                    amount_charged=payment.amount_charged,
                    currency=payment.currency,
                )
            )

    def _replay(self, checkout_id: str, buyer_id: str) -> Optional[CheckoutResult]:
        settlement = self.settlement_service.find_settled(checkout_id, buyer_id)
        if settlement is None:
            return None
        payment = self.payment_gateway.recorded_payment(checkout_id, buyer_id=buyer_id)
        self.logger.info(f"Checkout {checkout_id} already settled for buyer {buyer_id}: {settlement.order_ids}")
        return CheckoutResult(
            checkout_id=checkout_id,
            order_ids=settlement.order_ids,
            already_settled=True,
            payment_reference=payment.reference if payment else "",
            amount_charged=payment.amount_charged if payment else 0,
            currency=payment.currency if payment else "",
        )

    def _send_confirmations(self, order_ids: List[str], shipping: Dict[str, str]) -> bool:
        try:
            orders = Order.objects.filter(id__in=order_ids).prefetch_related("items").order_by("id")
            notifications = [
                OrderNotification.from_order(order, buyer_email=shipping["email"], buyer_name=shipping["name"])
                for order in orders
            ]
            return self.notification_dispatcher.notify_all(notifications)
        except Exception as e:
            self.logger.error(f"Could not dispatch confirmations for orders {order_ids}: {e}", exc_info=True)
            return False
