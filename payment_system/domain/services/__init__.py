from .currency_normalizer import ChargeQuote, CurrencyNormalizer
from .fee_policy import FeeBreakdown, FeePolicy
from .payment_gateway import PaymentGatewayAdapter, PaymentResult
from .settlement_service import SettlementResult, SettlementService, SettlementState

__all__ = [
    "ChargeQuote",
    "CurrencyNormalizer",
    "FeeBreakdown",
    "FeePolicy",
    "PaymentGatewayAdapter",
    "PaymentResult",
    "SettlementResult",
    "SettlementService",
    "SettlementState",
]
