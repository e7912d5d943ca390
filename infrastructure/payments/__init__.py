"""
Payment Service Abstraction Layer
==================================

Provides a unified interface for charging buyers across different payment providers.
"""

from .factory import PaymentFactory
from .interface import (
    ChargeConfirmation,
    ChargeIntent,
    PaymentDeclinedException,
    PaymentException,
    PaymentProviderInterface,
    PaymentStatus,
    PaymentTransientException,
)
from .mock_provider import MockPaymentProvider
from .stripe_provider import StripeProvider

__all__ = [
    "PaymentProviderInterface",
    "ChargeIntent",
    "ChargeConfirmation",
    "PaymentStatus",
    "PaymentException",
    "PaymentDeclinedException",
    "PaymentTransientException",
    "StripeProvider",
    "MockPaymentProvider",
    "PaymentFactory",
]
