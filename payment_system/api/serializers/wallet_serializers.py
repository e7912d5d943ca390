from rest_framework import serializers

from payment_system.models import LedgerEntry, SellerWallet


class LedgerEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = LedgerEntry
        fields = [
            "id",
            "entry_type",
            "checkout_id",
            "order_id",
            "amount",
            "seller_amount",
            "admin_fees",
            "currency",
            "status",
            "payment_reference",
            "description",
            "created_at",
        ]
        read_only_fields = fields


class SellerWalletSerializer(serializers.ModelSerializer):
    """Wallet balance with the most recent ledger entries"""

    recent_entries = serializers.SerializerMethodField()

    class Meta:
        model = SellerWallet
        fields = ["seller_id", "available_balance", "pending_balance", "currency", "updated_at", "recent_entries"]
        read_only_fields = fields

    def get_recent_entries(self, obj):
        limit = self.context.get("entry_limit", 20)
        entries = LedgerEntry.objects.filter(seller_id=obj.seller_id).order_by("-created_at", "-id")[:limit]
        return LedgerEntrySerializer(entries, many=True).data
