"""
Stripe Payment Provider
========================

Concrete implementation of PaymentProviderInterface using Stripe PaymentIntents.

Retries are not done here: the payment gateway adapter owns the retry
policy, so Stripe's own network retries are disabled and every Stripe error
is translated into a declined, transient or generic PaymentException.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

import stripe
from django.conf import settings

from .interface import (
    ChargeConfirmation,
    ChargeIntent,
    PaymentDeclinedException,
    PaymentException,
    PaymentProviderInterface,
    PaymentStatus,
    PaymentTransientException,
)

logger = logging.getLogger(__name__)


@contextmanager
def _stripe_errors(operation: str, reference: str = ""):
    """Translate Stripe errors raised inside the block into PaymentExceptions."""
    try:
        yield
    except stripe.CardError as e:
        logger.warning(f"Stripe declined {operation}: {e.user_message or e}")
        raise PaymentDeclinedException(e.user_message or str(e), decline_code=e.code, reference=reference) from e
    except (stripe.InvalidRequestError, stripe.IdempotencyError) as e:
        logger.error(f"Stripe rejected {operation}: {e}")
        raise PaymentDeclinedException(str(e), decline_code=e.code, reference=reference) from e
    except (stripe.APIConnectionError, stripe.RateLimitError) as e:
        logger.warning(f"Stripe unreachable during {operation}: {e}")
        raise PaymentTransientException(f"Stripe unreachable: {e}") from e
    except stripe.APIError as e:
        logger.warning(f"Stripe API error during {operation}: {e}")
        raise PaymentTransientException(f"Stripe API error: {e}") from e
    except stripe.StripeError as e:
        logger.error(f"Stripe {operation} failed: {e}")
        raise PaymentException(f"Failed to {operation}: {e}") from e


class StripeProvider(PaymentProviderInterface):
    """
    Stripe payment provider implementation.

    Configuration (in settings.py):
        STRIPE_SECRET_KEY: Stripe secret API key
        STRIPE_TIMEOUT: Per-request timeout in seconds
    """

    def __init__(self):
        """Initialize Stripe provider with API credentials."""
        stripe.api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
        stripe.max_network_retries = 0
        stripe.default_http_client = stripe.RequestsClient(timeout=getattr(settings, "STRIPE_TIMEOUT", 30))

        if not stripe.api_key:
            logger.warning("STRIPE_SECRET_KEY not configured")

    def create_charge(
        self,
        amount: int,
        currency: str,
        metadata: Dict[str, Any],
        idempotency_key: str,
        payment_method: Optional[str] = None,
    ) -> ChargeIntent:
        """
        Create a Stripe PaymentIntent.

        Args:
            amount: Amount in smallest currency unit
            currency: ISO currency code
            metadata: Custom metadata (includes checkout_id)
            idempotency_key: Stripe idempotency key
            payment_method: Stripe PaymentMethod id

        Returns:
            ChargeIntent object
        """
        params = {
            "amount": amount,
            "currency": currency.lower(),
            "metadata": {key: str(value) for key, value in metadata.items()},
            "automatic_payment_methods": {"enabled": True, "allow_redirects": "never"},
            "idempotency_key": f"{idempotency_key}-create",
        }
        if payment_method:
            params["payment_method"] = payment_method

        with _stripe_errors("create charge"):
            intent = stripe.PaymentIntent.create(**params)

        logger.info(f"Created Stripe payment intent: {intent.id}")

        return ChargeIntent(
            reference=intent.id,
            amount=intent.amount,
            currency=intent.currency,
            status=self._map_stripe_payment_status(intent.status),
            client_secret=intent.client_secret,
            metadata=dict(intent.metadata or {}),
        )

    def confirm_charge(
        self,
        reference: str,
        idempotency_key: str,
        payment_method: Optional[str] = None,
    ) -> ChargeConfirmation:
        """
        Confirm a Stripe PaymentIntent.

        Args:
            reference: PaymentIntent id
            idempotency_key: Stripe idempotency key
            payment_method: Stripe PaymentMethod id

        Returns:
            ChargeConfirmation object
        """
        params = {"idempotency_key": f"{idempotency_key}-confirm"}
        if payment_method:
            params["payment_method"] = payment_method

        with _stripe_errors("confirm charge", reference=reference):
            intent = stripe.PaymentIntent.confirm(reference, **params)

        logger.info(f"Confirmed Stripe payment intent {intent.id}: {intent.status}")
        return self._to_confirmation(intent)

    def _to_confirmation(self, intent) -> ChargeConfirmation:
        last_error = getattr(intent, "last_payment_error", None)
        status = self._map_stripe_payment_status(intent.status)
        if status == PaymentStatus.REQUIRES_CONFIRMATION and last_error:
            status = PaymentStatus.DECLINED

        return ChargeConfirmation(
            reference=intent.id,
            status=status,
            amount=intent.amount_received or intent.amount,
            currency=intent.currency,
            decline_code=getattr(last_error, "decline_code", None) if last_error else None,
            message=getattr(last_error, "message", "") if last_error else "",
        )

    def _map_stripe_payment_status(self, stripe_status: str) -> PaymentStatus:
        """
        Map Stripe PaymentIntent status to internal PaymentStatus.

        Args:
            stripe_status: Stripe payment intent status string

        Returns:
            PaymentStatus enum value
        """
        status_mapping = {
            "requires_payment_method": PaymentStatus.REQUIRES_CONFIRMATION,
            "requires_confirmation": PaymentStatus.REQUIRES_CONFIRMATION,
            "requires_action": PaymentStatus.REQUIRES_ACTION,
            "processing": PaymentStatus.PROCESSING,
            "requires_capture": PaymentStatus.PROCESSING,
            "succeeded": PaymentStatus.SUCCEEDED,
            "canceled": PaymentStatus.CANCELED,
        }

        return status_mapping.get(stripe_status, PaymentStatus.PROCESSING)
