from decimal import Decimal

from django.db import models


class SellerWallet(models.Model):
    """
    Balance held by the platform on behalf of one seller.

    ``available_balance`` only ever grows through settlement; withdrawals
    live elsewhere. Writes go through version-conditional updates inside the
    settlement transaction, never through ``save()`` on a stale instance.
    The platform's own share is kept in a wallet with the configured
    platform wallet id.
    """

    seller_id = models.CharField(primary_key=True, max_length=128)
    available_balance = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    pending_balance = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="NGN")
    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payment_seller_wallets"
        verbose_name = "Seller Wallet"
        verbose_name_plural = "Seller Wallets"

    def __str__(self):
        return f"Wallet {self.seller_id}: {self.available_balance} {self.currency}"
