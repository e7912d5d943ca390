from .wallet_views import seller_wallet

__all__ = ["seller_wallet"]
