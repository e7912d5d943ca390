from django.db import models


class PaymentTracker(models.Model):
    """
    Terminal payment outcome per checkout.

    Once a checkout has a ``succeeded`` or ``declined`` row, the payment
    processor is not contacted again for that checkout id; a re-driven
    checkout reuses the recorded reference instead.
    """

    STATUS_SUCCEEDED = "succeeded"
    STATUS_DECLINED = "declined"

    STATUS_CHOICES = [
        (STATUS_SUCCEEDED, "Succeeded"),
        (STATUS_DECLINED, "Declined"),
    ]

    checkout_id = models.CharField(primary_key=True, max_length=128)
    buyer_id = models.CharField(max_length=128, db_index=True)

    provider = models.CharField(max_length=30, default="stripe")
    payment_reference = models.CharField(max_length=255, blank=True, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES)

    # Charged amount in the smallest unit of the charge currency
    amount_minor = models.BigIntegerField(default=0)
    currency = models.CharField(max_length=3)

    failure_code = models.CharField(max_length=50, blank=True, help_text="Processor decline code")
    failure_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payment_trackers"
        ordering = ["-created_at"]

    @property
    def is_succeeded(self):
        return self.status == self.STATUS_SUCCEEDED

    def __str__(self):
        return f"Payment {self.checkout_id}: {self.payment_reference or 'no reference'} [{self.status}]"
