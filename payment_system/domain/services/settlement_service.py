"""
SettlementService - Turning a Paid Checkout into Orders

Given the seller partitions of a checkout and a successful payment, settlement
decrements stock, credits every seller's wallet with its share, credits the
platform wallet with the fees, and writes one order and one ledger entry per
seller. All of it happens in one database transaction: either every seller in
the checkout settles or none does.

States:
    VALIDATING -> RESERVING -> COMMITTING -> SETTLED
    VALIDATING | RESERVING -> ABORTED

Contended rows (product stock, wallets) are written with version-conditional
updates; a lost race rolls the whole unit back and it is re-run from fresh
reads a bounded number of times.

Settlement is idempotent on the checkout id. The existence check for orders of
the checkout runs inside the same transaction as the writes, and a checkout id
stays bound to the buyer whose orders it already holds.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from django.conf import settings

from infrastructure.observability import tracer
from marketplace.cart.domain.services.partition_service import SellerPartition
from marketplace.models import Order, OrderItem, Product
from marketplace.services.base import BaseService
from payment_system.domain.exceptions import (
    CheckoutConflictError,
    ConcurrencyExhaustedError,
    FeePolicyViolationError,
    InsufficientStockError,
    SettlementIntegrityError,
    SettlementOutcomeUnknownError,
    ValidationError,
)
from payment_system.domain.models import LedgerEntry, SellerWallet
from payment_system.domain.services.fee_policy import ZERO, FeeBreakdown, FeePolicy, quantize_money
from payment_system.domain.services.payment_gateway import PaymentResult
from payment_system.infra.observability.metrics import (
    seller_credit_total,
    settlement_conflicts_total,
    settlement_duration,
    settlements_total,
)
from utils.transaction_utils import (
    ConflictRetriesExhausted,
    IntegrityViolation,
    TransactionOutcomeUnknown,
    conditional_update,
    run_atomic_with_retry,
)


logger = logging.getLogger(__name__)


class SettlementState(str, Enum):
    VALIDATING = "validating"
    RESERVING = "reserving"
    COMMITTING = "committing"
    SETTLED = "settled"
    ABORTED = "aborted"


@dataclass
class SettlementResult:
    """
    Outcome of a settlement.

    Attributes:
        checkout_id: Checkout the orders belong to
        order_ids: One order id per seller partition
        state: Final state (SETTLED)
        already_settled: True when an earlier call had already settled this checkout
        fees: Fee breakdown per seller id (empty on replay)
        rounding_drift: Currency rounding difference booked to the platform wallet
    """

    checkout_id: str
    order_ids: List[str]
    state: SettlementState = SettlementState.SETTLED
    already_settled: bool = False
    fees: Dict[str, FeeBreakdown] = field(default_factory=dict)
    rounding_drift: Decimal = ZERO

    @property
    def totals(self) -> FeeBreakdown:
        total = FeeBreakdown.zero()
        for breakdown in self.fees.values():
            total = total + breakdown
        return total


def _settlement_config(key: str, default):
    return getattr(settings, "SETTLEMENT", {}).get(key, default)


class SettlementService(BaseService):
    """
    Settlement transaction coordinator.

    Args:
        fee_policy: Fee policy (defaults to the configured one)
        platform_wallet_id: Wallet that receives fees and rounding drift
        currency: Settlement (canonical) currency
        attempts: Transaction attempts before giving up on conflicts
        base_delay: Backoff before the first transaction retry, in seconds
        timeout: Overall deadline for the transaction across retries, in seconds
    """

    def __init__(
        self,
        fee_policy: Optional[FeePolicy] = None,
        platform_wallet_id: Optional[str] = None,
        currency: Optional[str] = None,
        attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__()
        self.fee_policy = fee_policy or FeePolicy.from_settings()
        self.platform_wallet_id = platform_wallet_id or _settlement_config("PLATFORM_WALLET_ID", "admin")
        self.currency = currency or _settlement_config("CANONICAL_CURRENCY", "NGN")
        self.attempts = attempts if attempts is not None else _settlement_config("CONCURRENCY_RETRY_ATTEMPTS", 3)
        self.base_delay = (
            base_delay if base_delay is not None else _settlement_config("CONCURRENCY_RETRY_BASE_DELAY", 0.05)
        )
        self.timeout = timeout if timeout is not None else _settlement_config("TRANSACTION_TIMEOUT", None)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @BaseService.log_performance
    def settle(
        self,
        checkout_id: str,
        buyer_id: str,
        partitions: List[SellerPartition],
        payment: PaymentResult,
        shipping_details: Optional[Dict] = None,
        rounding_drift: Decimal = ZERO,
    ) -> SettlementResult:
        """
        Settle a paid checkout.

        Args:
            checkout_id: Idempotency token shared by every order of the checkout
            buyer_id: Buyer placing the checkout
            partitions: Cart lines grouped by seller
            payment: Successful payment for the checkout
            shipping_details: Shipping info copied onto every order
            rounding_drift: Charge rounding difference (canonical currency)

        Returns:
            SettlementResult with the order ids

        Raises:
            ValidationError: No checkout id or no partitions
            CheckoutConflictError: The checkout id belongs to another buyer, or an
                order id it produces is taken by another checkout
            InsufficientStockError: Some product cannot cover its requested quantity
            FeePolicyViolationError: Fees exceed a seller's subtotal
            ConcurrencyExhaustedError: Kept losing races to concurrent checkouts
            SettlementIntegrityError: A database constraint rejected the writes
            SettlementOutcomeUnknownError: The transaction failed without telling
                whether it committed; re-drive with the same checkout id
        """
        if not checkout_id:
            raise ValidationError("Settlement requires a checkout id")
        if not partitions:
            raise ValidationError("Settlement requires at least one seller partition")

        start_time = time.time()
        state = SettlementState.VALIDATING

        with tracer.start_as_current_span("settlement_transaction") as span:
            span.set_attribute("checkout.id", checkout_id)
            span.set_attribute("settlement.sellers", len(partitions))

            try:
                requested = self._requested_quantities(partitions)
                fees = self.validate(checkout_id, buyer_id, partitions, requested)

                state = SettlementState.RESERVING
                result = run_atomic_with_retry(
                    lambda: self._settle_unit(
                        checkout_id, buyer_id, partitions, payment, fees, requested, shipping_details, rounding_drift
                    ),
                    attempts=self.attempts,
                    base_delay=self.base_delay,
                    timeout=self.timeout,
                    label=f"settlement {checkout_id}",
                    on_conflict=lambda exc: settlement_conflicts_total.inc(),
                )

            except InsufficientStockError as e:
                self._abort(span, state, checkout_id, "insufficient_stock", e)
                raise
            except FeePolicyViolationError as e:
                self._abort(span, state, checkout_id, "fee_policy_violation", e)
                raise
            except CheckoutConflictError as e:
                self._abort(span, state, checkout_id, "checkout_id_conflict", e)
                raise
            except IntegrityViolation as e:
                self._abort(span, state, checkout_id, "integrity_error", e)
                raise SettlementIntegrityError(
                    f"Settlement of checkout {checkout_id} was rejected by the database"
                ) from e
            except ConflictRetriesExhausted as e:
                self._abort(span, state, checkout_id, "concurrency_exhausted", e)
                raise ConcurrencyExhaustedError(
                    "Checkout is busy, please try again", attempts=e.attempts
                ) from e
            except TransactionOutcomeUnknown as e:
                self._abort(span, state, checkout_id, "outcome_unknown", e)
                raise SettlementOutcomeUnknownError(
                    f"Settlement of checkout {checkout_id} may not have completed; retry with the same checkout id"
                ) from e
            finally:
                settlement_duration.observe(time.time() - start_time)

            if result.already_settled:
                settlements_total.labels(outcome="replayed").inc()
                self.logger.info(f"Checkout {checkout_id} already settled: {result.order_ids}")
            else:
                settlements_total.labels(outcome="settled").inc()
                for breakdown in result.fees.values():
                    seller_credit_total.labels(currency=self.currency).inc(float(breakdown.seller_amount))
                self.logger.info(
                    f"Settled checkout {checkout_id} for buyer {buyer_id}: "
                    f"{len(result.order_ids)} orders, payment {payment.reference}"
                )

            span.set_attribute("settlement.state", result.state.value)
            span.set_attribute("settlement.already_settled", result.already_settled)
            return result

    def find_settled(self, checkout_id: str, buyer_id: str) -> Optional[SettlementResult]:
        """Replay result for a checkout the buyer already settled, else None."""
        order_ids = list(
            Order.objects.filter(checkout_id=checkout_id, buyer_id=str(buyer_id))
            .order_by("id")
            .values_list("id", flat=True)
        )
        if not order_ids:
            return None
        return SettlementResult(checkout_id=checkout_id, order_ids=order_ids, already_settled=True)

    # ------------------------------------------------------------------
    # Validating
    # ------------------------------------------------------------------

    @staticmethod
    def _requested_quantities(partitions: List[SellerPartition]) -> "OrderedDict[str, int]":
        requested: "OrderedDict[str, int]" = OrderedDict()
        for partition in partitions:
            for line in partition.items:
                requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity
        return requested

    def validate(
        self,
        checkout_id: str,
        buyer_id: str,
        partitions: List[SellerPartition],
        requested: Optional[Dict[str, int]] = None,
    ) -> Dict[str, FeeBreakdown]:
        """
        Ownership and stock pre-check, and fee computation. Performs no writes.

        Checkout runs this before charging so an obvious shortage or a checkout
        id that belongs to someone else never reaches the payment processor;
        settlement runs it again.

        Returns:
            Fee breakdown per seller id

        Raises:
            CheckoutConflictError, InsufficientStockError, FeePolicyViolationError
        """
        if requested is None:
            requested = self._requested_quantities(partitions)
        with tracer.start_as_current_span("settlement_validate"):
            owners = set(Order.objects.filter(checkout_id=checkout_id).values_list("buyer_id", flat=True))
            self._check_owner(checkout_id, buyer_id, owners)
            self._check_order_ids(checkout_id, partitions)
            # A re-driven checkout skips the stock pre-check; its own earlier
            # decrement would otherwise look like a shortage.
            if not owners:
                self._check_stock(requested)

            fees: Dict[str, FeeBreakdown] = {}
            for partition in partitions:
                breakdown = self.fee_policy.compute_partition_fees(partition.items)
                if breakdown.seller_amount < ZERO:
                    raise FeePolicyViolationError(
                        f"Fees {breakdown.admin_amount} exceed subtotal {breakdown.subtotal} "
                        f"for seller {partition.seller_id}",
                        seller_id=partition.seller_id,
                    )
                fees[partition.seller_id] = breakdown
            return fees

    @staticmethod
    def _check_owner(checkout_id: str, buyer_id: str, owners: set) -> None:
        if owners - {str(buyer_id)}:
            raise CheckoutConflictError(f"Checkout {checkout_id} belongs to another buyer", checkout_id=checkout_id)

    @staticmethod
    def _check_order_ids(checkout_id: str, partitions: List[SellerPartition]) -> None:
        """Refuse order ids already used by a different checkout (``a-b`` + ``c`` vs ``a`` + ``b-c``)."""
        order_ids = [Order.build_id(checkout_id, partition.seller_id) for partition in partitions]
        clash = Order.objects.filter(id__in=order_ids).exclude(checkout_id=checkout_id).first()
        if clash is not None:
            raise CheckoutConflictError(
                f"Order id {clash.id} is already used by checkout {clash.checkout_id}",
                checkout_id=checkout_id,
                order_id=clash.id,
            )

    @staticmethod
    def _check_stock(requested: Dict[str, int]) -> Dict[str, Product]:
        products = {str(product.pk): product for product in Product.objects.filter(pk__in=list(requested))}
        for product_id, quantity in requested.items():
            product = products.get(product_id)
            available = product.stock_quantity if product is not None else 0
            if available < quantity:
                raise InsufficientStockError(product_id, quantity, available)
        return products

    # ------------------------------------------------------------------
    # Reserving + Committing (one atomic unit, re-run on conflict)
    # ------------------------------------------------------------------

    def _settle_unit(
        self,
        checkout_id: str,
        buyer_id: str,
        partitions: List[SellerPartition],
        payment: PaymentResult,
        fees: Dict[str, FeeBreakdown],
        requested: Dict[str, int],
        shipping_details: Optional[Dict],
        rounding_drift: Decimal,
    ) -> SettlementResult:
        existing = dict(Order.objects.filter(checkout_id=checkout_id).values_list("id", "buyer_id"))
        if existing:
            self._check_owner(checkout_id, buyer_id, set(existing.values()))
            return SettlementResult(
                checkout_id=checkout_id,
                order_ids=self._ordered_ids(checkout_id, partitions, set(existing)),
                already_settled=True,
            )
        self._check_order_ids(checkout_id, partitions)

        # Reserving: fresh reads; any shortage now means a concurrent checkout won
        products = self._check_stock(requested)

        # Committing
        for product_id, quantity in requested.items():
            product = products[product_id]
            conditional_update(
                Product, product.pk, product.version, stock_quantity=product.stock_quantity - quantity
            )

        admin_total = ZERO
        for partition in partitions:
            breakdown = fees[partition.seller_id]
            self._credit_wallet(partition.seller_id, breakdown.seller_amount)
            admin_total += breakdown.admin_amount

        platform_credit = quantize_money(admin_total + rounding_drift)
        if platform_credit != ZERO:
            self._credit_wallet(self.platform_wallet_id, platform_credit)

        order_ids = []
        for partition in partitions:
            order = self._create_order(
                checkout_id, buyer_id, partition, fees[partition.seller_id], payment, shipping_details
            )
            order_ids.append(order.id)

        return SettlementResult(
            checkout_id=checkout_id,
            order_ids=order_ids,
            fees=dict(fees),
            rounding_drift=rounding_drift,
        )

    def _credit_wallet(self, wallet_id: str, amount: Decimal) -> None:
        wallet, created = SellerWallet.objects.get_or_create(seller_id=wallet_id, defaults={"currency": self.currency})
        if created:
            self.logger.info(f"Opened wallet for {wallet_id}")
        conditional_update(
            SellerWallet,
            wallet.pk,
            wallet.version,
            available_balance=wallet.available_balance + amount,
        )

    def _create_order(
        self,
        checkout_id: str,
        buyer_id: str,
        partition: SellerPartition,
        breakdown: FeeBreakdown,
        payment: PaymentResult,
        shipping_details: Optional[Dict],
    ) -> Order:
        order = Order.objects.create(
            id=Order.build_id(checkout_id, partition.seller_id),
            checkout_id=checkout_id,
            buyer_id=buyer_id,
            seller_id=partition.seller_id,
            subtotal=breakdown.subtotal,
            handling_fee=breakdown.handling_fee,
            buyer_protection_fee=breakdown.buyer_protection_fee,
            tax_fee=breakdown.tax_fee,
            admin_amount=breakdown.admin_amount,
            seller_amount=breakdown.seller_amount,
            currency=self.currency,
            payment_reference=payment.reference,
            shipping_details=shipping_details or {},
        )

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product_id=line.product_id,
                    product_name=line.product_name[:200],
                    category=line.category or "",
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    total_price=line.line_total,
                )
                for line in partition.items
            ]
        )

        LedgerEntry.objects.create(
            entry_type=LedgerEntry.TYPE_SALE,
            checkout_id=checkout_id,
            order_id=order.id,
            buyer_id=buyer_id,
            seller_id=partition.seller_id,
            product_ids=[line.product_id for line in partition.items],
            amount=breakdown.subtotal,
            seller_amount=breakdown.seller_amount,
            admin_fees=breakdown.admin_amount,
            currency=self.currency,
            status=LedgerEntry.STATUS_COMPLETED,
            payment_reference=payment.reference,
            description=f"Sale of {len(partition.items)} item(s) in checkout {checkout_id}",
        )
        return order

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _ordered_ids(checkout_id: str, partitions: List[SellerPartition], existing: set) -> List[str]:
        ordered = [
            Order.build_id(checkout_id, partition.seller_id)
            for partition in partitions
            if Order.build_id(checkout_id, partition.seller_id) in existing
        ]
        return ordered + sorted(existing - set(ordered))

    def _abort(self, span, state: SettlementState, checkout_id: str, reason: str, error: Exception) -> None:
        span.record_exception(error)
        span.set_attribute("settlement.state", SettlementState.ABORTED.value)
        settlements_total.labels(outcome=reason).inc()
        self.logger.warning(f"Settlement of checkout {checkout_id} aborted during {state.value}: {reason} ({error})")
