from .wallet_serializers import LedgerEntrySerializer, SellerWalletSerializer

__all__ = ["LedgerEntrySerializer", "SellerWalletSerializer"]
