"""
Payment Provider Interface
===========================

Abstract base class defining the contract for charging a buyer through an
external payment processor.

Amounts cross this boundary as integers in the currency's smallest unit.
Every call carries an idempotency key (the checkout id) so a request that
reaches the processor twice is collapsed processor-side.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class PaymentStatus(str, Enum):
    """Payment status enumeration."""

    REQUIRES_CONFIRMATION = "requires_confirmation"
    REQUIRES_ACTION = "requires_action"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    DECLINED = "declined"
    CANCELED = "canceled"


@dataclass
class ChargeIntent:
    """
    A charge created at the processor but not necessarily confirmed.

    Attributes:
        reference: Processor reference for the charge (e.g. Stripe PaymentIntent id)
        amount: Amount in smallest currency unit
        currency: ISO currency code (lowercase)
        status: Current status of the charge
        client_secret: Secret a client can use to complete the charge, if any
        metadata: Metadata attached to the charge
    """

    reference: str
    amount: int
    currency: str
    status: PaymentStatus
    client_secret: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChargeConfirmation:
    """
    Outcome of confirming a charge.

    Attributes:
        reference: Processor reference for the charge
        status: Status after confirmation
        amount: Amount received, in smallest currency unit
        currency: ISO currency code (lowercase)
        decline_code: Processor decline code when the charge was refused
        message: Processor message, if any
    """

    reference: str
    status: PaymentStatus
    amount: int
    currency: str
    decline_code: Optional[str] = None
    message: str = ""


class PaymentProviderInterface(ABC):
    """
    Abstract interface for payment provider operations.

    Concrete implementations:
        - StripeProvider: Stripe PaymentIntents
        - MockPaymentProvider: In-memory processor for tests and development
    """

    @abstractmethod
    def create_charge(
        self,
        amount: int,
        currency: str,
        metadata: Dict[str, Any],
        idempotency_key: str,
        payment_method: Optional[str] = None,
    ) -> ChargeIntent:
        """
        Create a charge at the processor.

        Args:
            amount: Amount in smallest currency unit
            currency: ISO currency code
            metadata: Data attached to the charge; must include ``checkout_id``
            idempotency_key: Key the processor uses to deduplicate the request
            payment_method: Payment method token supplied by the client

        Returns:
            ChargeIntent

        Raises:
            PaymentDeclinedException: The processor refused the request
            PaymentTransientException: Timeout, connection failure or processor outage
            PaymentException: Any other processor failure
        """
        pass

    @abstractmethod
    def confirm_charge(
        self,
        reference: str,
        idempotency_key: str,
        payment_method: Optional[str] = None,
    ) -> ChargeConfirmation:
        """
        Confirm a previously created charge.

        Args:
            reference: Processor reference returned by create_charge
            idempotency_key: Key the processor uses to deduplicate the request
            payment_method: Payment method token supplied by the client

        Returns:
            ChargeConfirmation

        Raises:
            PaymentDeclinedException: The charge was refused
            PaymentTransientException: Timeout, connection failure or processor outage
            PaymentException: Any other processor failure
        """
        pass


class PaymentException(Exception):
    """Base exception for payment operations."""

    pass


class PaymentDeclinedException(PaymentException):
    """The processor refused the charge or rejected the request as invalid."""

    def __init__(self, message: str, decline_code: Optional[str] = None, reference: str = ""):
        self.decline_code = decline_code
        self.reference = reference
        super().__init__(message)


class PaymentTransientException(PaymentException):
    """The processor could not be reached or failed temporarily; safe to retry."""

    pass
