from .domain.models.exchange_rate import ExchangeRate, ExchangeRateManager
from .domain.models.ledger import LedgerEntry
from .domain.models.payment_tracker import PaymentTracker
from .domain.models.wallet import SellerWallet


__all__ = [
    "ExchangeRate",
    "ExchangeRateManager",
    "LedgerEntry",
    "PaymentTracker",
    "SellerWallet",
]
