"""
Mock Payment Provider
=====================

In-memory implementation of PaymentProviderInterface for tests and local
development.

Behaves like a processor that honours idempotency keys: creating a charge
twice with the same key returns the same charge. Failures can be queued to
exercise retry and decline handling.
"""

import logging
import uuid
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from .interface import (
    ChargeConfirmation,
    ChargeIntent,
    PaymentDeclinedException,
    PaymentProviderInterface,
    PaymentStatus,
)

logger = logging.getLogger(__name__)


class MockPaymentProvider(PaymentProviderInterface):
    """
    Mock payment provider.

    Attributes:
        charges: Created charges by reference
        calls: Every call made, as (operation, kwargs) tuples
    """

    def __init__(self):
        self.charges: Dict[str, ChargeIntent] = {}
        self.calls: List[tuple] = []
        self._by_idempotency_key: Dict[str, str] = {}
        self._failures: Deque[Exception] = deque()
        self._declined_methods = {"pm_card_declined"}

    def fail_next(self, *exceptions: Exception) -> None:
        """Queue exceptions to raise on the next provider calls, one per call."""
        self._failures.extend(exceptions)

    def _maybe_fail(self) -> None:
        if self._failures:
            raise self._failures.popleft()

    def create_charge(
        self,
        amount: int,
        currency: str,
        metadata: Dict[str, Any],
        idempotency_key: str,
        payment_method: Optional[str] = None,
    ) -> ChargeIntent:
        self.calls.append(("create_charge", {"amount": amount, "currency": currency, "idempotency_key": idempotency_key}))
        self._maybe_fail()

        existing = self._by_idempotency_key.get(idempotency_key)
        if existing:
            logger.info(f"[MOCK PAYMENT] Replayed charge {existing} for key {idempotency_key}")
            return self.charges[existing]

        reference = f"pi_mock_{uuid.uuid4().hex[:16]}"
        intent = ChargeIntent(
            reference=reference,
            amount=amount,
            currency=currency.lower(),
            status=PaymentStatus.REQUIRES_CONFIRMATION,
            client_secret=f"{reference}_secret",
            metadata=dict(metadata),
        )
        self.charges[reference] = intent
        self._by_idempotency_key[idempotency_key] = reference

        logger.info(f"[MOCK PAYMENT] Created charge {reference}: {amount} {currency}")
        return intent

    def confirm_charge(
        self,
        reference: str,
        idempotency_key: str,
        payment_method: Optional[str] = None,
    ) -> ChargeConfirmation:
        self.calls.append(("confirm_charge", {"reference": reference, "idempotency_key": idempotency_key}))
        self._maybe_fail()

        intent = self.charges.get(reference)
        if intent is None:
            raise PaymentDeclinedException(f"No such charge: {reference}", decline_code="resource_missing")

        if payment_method in self._declined_methods:
            intent.status = PaymentStatus.DECLINED
            logger.info(f"[MOCK PAYMENT] Declined charge {reference}")
            raise PaymentDeclinedException("Your card was declined.", decline_code="card_declined", reference=reference)

        intent.status = PaymentStatus.SUCCEEDED
        logger.info(f"[MOCK PAYMENT] Confirmed charge {reference}")
        return ChargeConfirmation(
            reference=reference, status=intent.status, amount=intent.amount, currency=intent.currency
        )

    def reset(self) -> None:
        """Forget all charges, calls and queued failures."""
        self.charges.clear()
        self.calls.clear()
        self._by_idempotency_key.clear()
        self._failures.clear()
