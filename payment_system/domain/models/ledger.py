from django.db import models


class LedgerEntryQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise TypeError("Ledger entries are append-only")

    def delete(self):
        raise TypeError("Ledger entries are append-only")


class LedgerEntry(models.Model):
    """
    Immutable audit record of one seller's share of one settled checkout.

    Written once inside the settlement transaction; reconciles orders against
    wallet credits. Updates and deletes are refused.
    """

    TYPE_SALE = "sale"

    TYPE_CHOICES = [
        (TYPE_SALE, "Sale"),
    ]

    STATUS_COMPLETED = "completed"

    STATUS_CHOICES = [
        (STATUS_COMPLETED, "Completed"),
    ]

    entry_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_SALE)
    checkout_id = models.CharField(max_length=128, db_index=True)
    order_id = models.CharField(max_length=300, unique=True)
    buyer_id = models.CharField(max_length=128, db_index=True)
    seller_id = models.CharField(max_length=128, db_index=True)
    product_ids = models.JSONField(default=list)

    amount = models.DecimalField(max_digits=14, decimal_places=2, help_text="Partition subtotal")
    seller_amount = models.DecimalField(max_digits=14, decimal_places=2)
    admin_fees = models.DecimalField(max_digits=14, decimal_places=2)
    currency = models.CharField(max_length=3, default="NGN")

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_COMPLETED)
    payment_reference = models.CharField(max_length=255)
    description = models.CharField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = LedgerEntryQuerySet.as_manager()

    class Meta:
        db_table = "payment_ledger_entries"
        ordering = ["created_at", "id"]
        verbose_name = "Ledger Entry"
        verbose_name_plural = "Ledger Entries"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise TypeError("Ledger entries are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise TypeError("Ledger entries are append-only")

    def __str__(self):
        return f"{self.entry_type.title()}: {self.order_id} - {self.amount} {self.currency} [{self.status}]"
