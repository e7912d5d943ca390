from .exchange_rate import ExchangeRate, ExchangeRateManager
from .ledger import LedgerEntry
from .payment_tracker import PaymentTracker
from .wallet import SellerWallet


__all__ = [
    "ExchangeRate",
    "ExchangeRateManager",
    "LedgerEntry",
    "PaymentTracker",
    "SellerWallet",
]
