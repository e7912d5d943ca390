"""
PaymentGatewayAdapter - Charging a Checkout

Wraps the configured payment provider with the shared bounded retry and turns
provider outcomes into settlement exceptions:

- timeouts, connection failures and processor outages are retried (3 attempts,
  exponential backoff) and surface as PaymentTransientError when exhausted
- declines and request validation failures surface immediately as
  PaymentDeclinedError

Past this adapter the rest of checkout treats the payment as having happened.
``charge_once`` records the terminal outcome per checkout id so a re-driven
checkout never reaches the processor a second time. The record binds the
checkout id to its buyer, amount and currency; a re-drive that disagrees with
any of them is refused rather than replayed.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from infrastructure.observability import tracer
from infrastructure.payments import (
    PaymentDeclinedException,
    PaymentException,
    PaymentProviderInterface,
    PaymentStatus,
    PaymentTransientException,
)
from marketplace.services.base import BaseService
from payment_system.domain.exceptions import (
    CheckoutConflictError,
    PaymentDeclinedError,
    PaymentError,
    PaymentTransientError,
    ValidationError,
)
from payment_system.domain.models import PaymentTracker
from payment_system.infra.observability.metrics import payment_attempts_total, payment_volume_total
from utils.retry import bounded_retry


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentResult:
    """
    Normalized outcome of a successful charge.

    Attributes:
        reference: Processor reference for the charge
        amount_charged: Amount charged, in smallest currency unit
        currency: ISO currency code (uppercase)
        status: Final payment status
        replayed: True when taken from a recorded earlier outcome
    """

    reference: str
    amount_charged: int
    currency: str
    status: PaymentStatus
    replayed: bool = False


def is_transient_payment_failure(exc: BaseException) -> bool:
    return isinstance(exc, PaymentTransientException)


class PaymentGatewayAdapter(BaseService):
    """
    Adapter between checkout and the external payment processor.

    Args:
        provider: Payment provider (defaults to the container's configured provider)
        attempts: Retry attempts for transient failures
        base_delay: Backoff before the first retry, in seconds
        timeout: Overall deadline for one charge across retries, in seconds
    """

    def __init__(
        self,
        provider: Optional[PaymentProviderInterface] = None,
        attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__()
        if provider is None:
            from infrastructure.container import container

            provider = container.payment()
        self.provider = provider
        self.attempts = attempts
        self.base_delay = base_delay
        self.timeout = timeout

    def _call(self, operation: str, func, *args, **kwargs):
        retrying = bounded_retry(
            is_transient_payment_failure,
            attempts=self.attempts,
            base_delay=self.base_delay,
            timeout=self.timeout,
            label=f"payment {operation}",
        )

        def attempt():
            try:
                result = func(*args, **kwargs)
            except PaymentTransientException:
                payment_attempts_total.labels(operation=operation, outcome="transient").inc()
                raise
            except PaymentDeclinedException:
                payment_attempts_total.labels(operation=operation, outcome="declined").inc()
                raise
            except PaymentException:
                payment_attempts_total.labels(operation=operation, outcome="error").inc()
                raise
            payment_attempts_total.labels(operation=operation, outcome="ok").inc()
            return result

        return retrying(attempt)

    @BaseService.log_performance
    def charge(
        self,
        amount: int,
        currency: str,
        metadata: Dict[str, Any],
        payment_method: Optional[str] = None,
    ) -> PaymentResult:
        """
        Create and confirm a charge.

        Args:
            amount: Amount in smallest currency unit
            currency: ISO currency code
            metadata: Must include ``checkout_id``; used as the idempotency key
            payment_method: Optional client-supplied payment method token

        Returns:
            PaymentResult

        Raises:
            ValidationError: Missing checkout id or non-positive amount
            PaymentDeclinedError: Processor refused the charge
            PaymentTransientError: Processor unreachable after all retries
            PaymentError: Any other processor failure
        """
        checkout_id = str(metadata.get("checkout_id") or "")
        if not checkout_id:
            raise ValidationError("Payment metadata must include checkout_id")
        if amount <= 0:
            raise ValidationError(f"Charge amount must be positive, got {amount}")

        with tracer.start_as_current_span("payment_charge") as span:
            span.set_attribute("checkout.id", checkout_id)
            span.set_attribute("payment.amount", amount)
            span.set_attribute("payment.currency", currency)

            try:
                intent = self._call(
                    "create",
                    self.provider.create_charge,
                    amount=amount,
                    currency=currency,
                    metadata=metadata,
                    idempotency_key=checkout_id,
                    payment_method=payment_method,
                )
                if intent.status == PaymentStatus.SUCCEEDED:
                    confirmation_status, reference, charged = intent.status, intent.reference, intent.amount
                else:
                    confirmation = self._call(
                        "confirm",
                        self.provider.confirm_charge,
                        reference=intent.reference,
                        idempotency_key=checkout_id,
                        payment_method=payment_method,
                    )
                    confirmation_status, reference, charged = (
                        confirmation.status,
                        confirmation.reference,
                        confirmation.amount,
                    )
                    if confirmation.status == PaymentStatus.DECLINED:
                        raise PaymentDeclinedException(
                            confirmation.message or "Payment was declined",
                            decline_code=confirmation.decline_code,
                            reference=confirmation.reference,
                        )

            except PaymentDeclinedException as e:
                span.record_exception(e)
                payment_volume_total.labels(currency=currency.upper(), status="declined").inc(amount)
                self.logger.warning(f"Payment declined for checkout {checkout_id}: {e}")
                raise PaymentDeclinedError(str(e), decline_code=e.decline_code or "", reference=e.reference) from e
            except PaymentTransientException as e:
                span.record_exception(e)
                self.logger.error(f"Payment processor unavailable for checkout {checkout_id}: {e}")
                raise PaymentTransientError(f"Payment processor unavailable: {e}") from e
            except PaymentException as e:
                span.record_exception(e)
                self.logger.error(f"Payment failed for checkout {checkout_id}: {e}")
                raise PaymentError(f"Payment failed: {e}") from e

            if confirmation_status != PaymentStatus.SUCCEEDED:
                self.logger.warning(f"Payment for checkout {checkout_id} not completed: {confirmation_status.value}")
                raise PaymentError(f"Payment not completed: {confirmation_status.value}", reference=reference)

            payment_volume_total.labels(currency=currency.upper(), status="succeeded").inc(charged)
            span.set_attribute("payment.reference", reference)
            self.logger.info(f"Charged {charged} {currency.upper()} for checkout {checkout_id}: {reference}")

            return PaymentResult(
                reference=reference, amount_charged=charged, currency=currency.upper(), status=confirmation_status
            )

    def recorded_payment(
        self,
        checkout_id: str,
        buyer_id: Optional[str] = None,
        amount: Optional[int] = None,
        currency: Optional[str] = None,
    ) -> Optional[PaymentResult]:
        """
        Terminal payment outcome recorded for a checkout.

        ``buyer_id``, ``amount`` and ``currency``, when given, must match what
        was recorded for the checkout.

        Returns:
            The recorded successful payment, or None when nothing is recorded

        Raises:
            CheckoutConflictError: The record belongs to another buyer or another amount
            PaymentDeclinedError: The checkout's payment was declined
        """
        tracker = PaymentTracker.objects.filter(checkout_id=checkout_id).first()
        if tracker is None:
            return None
        self._check_binding(tracker, buyer_id, amount, currency)
        if not tracker.is_succeeded:
            raise PaymentDeclinedError(
                tracker.failure_reason or "Payment was declined",
                decline_code=tracker.failure_code,
                reference=tracker.payment_reference,
            )
        return PaymentResult(
            reference=tracker.payment_reference,
            amount_charged=tracker.amount_minor,
            currency=tracker.currency,
            status=PaymentStatus.SUCCEEDED,
            replayed=True,
        )

    def _check_binding(
        self,
        tracker: PaymentTracker,
        buyer_id: Optional[str],
        amount: Optional[int],
        currency: Optional[str],
    ) -> None:
        checkout_id = tracker.checkout_id
        if buyer_id is not None and tracker.buyer_id != str(buyer_id):
            self.logger.warning(f"Checkout {checkout_id} reused by buyer {buyer_id}, owned by {tracker.buyer_id}")
            raise CheckoutConflictError(f"Checkout {checkout_id} belongs to another buyer", checkout_id=checkout_id)
        if (amount is not None and tracker.amount_minor != amount) or (
            currency is not None and tracker.currency != currency.upper()
        ):
            self.logger.warning(
                f"Checkout {checkout_id} re-driven for {amount} {currency}, "
                f"recorded {tracker.amount_minor} {tracker.currency}"
            )
            raise CheckoutConflictError(
                f"Checkout {checkout_id} was already paid for {tracker.amount_minor} {tracker.currency}; "
                f"start a new checkout for a different cart",
                checkout_id=checkout_id,
                recorded_amount=tracker.amount_minor,
                recorded_currency=tracker.currency,
            )

    def charge_once(
        self,
        checkout_id: str,
        buyer_id: str,
        amount: int,
        currency: str,
        metadata: Optional[Dict[str, Any]] = None,
        payment_method: Optional[str] = None,
    ) -> PaymentResult:
        """
        Charge a checkout at most once.

        A recorded success is replayed without contacting the processor; a
        recorded decline is raised again. Either is only reused for the buyer,
        amount and currency it was recorded with. Transient failures are not
        recorded, so a later re-drive can still charge.

        Raises:
            CheckoutConflictError: The checkout id is bound to another buyer or amount
            PaymentDeclinedError, PaymentTransientError, PaymentError
        """
        recorded = self.recorded_payment(checkout_id, buyer_id=buyer_id, amount=amount, currency=currency)
        if recorded is not None:
            self.logger.info(f"Replaying recorded payment {recorded.reference} for checkout {checkout_id}")
            return recorded

        charge_metadata = dict(metadata or {})
        charge_metadata.update({"checkout_id": checkout_id, "buyer_id": buyer_id})

        provider_name = type(self.provider).__name__
        try:
            result = self.charge(amount, currency, charge_metadata, payment_method=payment_method)
        except PaymentDeclinedError as e:
            PaymentTracker.objects.get_or_create(
                checkout_id=checkout_id,
                defaults={
                    "buyer_id": buyer_id,
                    "provider": provider_name,
                    "payment_reference": e.reference,
                    "status": PaymentTracker.STATUS_DECLINED,
                    "amount_minor": amount,
                    "currency": currency.upper(),
                    "failure_code": e.decline_code[:50],
                    "failure_reason": e.message,
                },
            )
            raise

        tracker, created = PaymentTracker.objects.get_or_create(
            checkout_id=checkout_id,
            defaults={
                "buyer_id": buyer_id,
                "provider": provider_name,
                "payment_reference": result.reference,
                "status": PaymentTracker.STATUS_SUCCEEDED,
                "amount_minor": result.amount_charged,
                "currency": result.currency,
            },
        )
        if not created:
            # A concurrent re-drive recorded first
            self._check_binding(tracker, buyer_id, result.amount_charged, result.currency)
        return result
