from django.db import models


class Order(models.Model):
    """
    One seller's share of a settled checkout.

    The primary key is ``{checkout_id}-{seller_id}`` so a re-driven checkout
    can never create a second order for the same seller. Everything except
    ``status`` is fixed at settlement time.
    """

    STATUS_PENDING_APPROVAL = "pending-approval"
    STATUS_SHIPPED = "shipped"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING_APPROVAL, "Pending Approval"),  # Set at settlement
        (STATUS_SHIPPED, "Shipped"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    # Allowed fulfilment moves out of each status
    STATUS_TRANSITIONS = {
        STATUS_PENDING_APPROVAL: {STATUS_SHIPPED, STATUS_CANCELLED},
        STATUS_SHIPPED: {STATUS_DELIVERED},
        STATUS_DELIVERED: set(),
        STATUS_CANCELLED: set(),
    }

    id = models.CharField(primary_key=True, max_length=300, editable=False)
    checkout_id = models.CharField(max_length=128, db_index=True)
    buyer_id = models.CharField(max_length=128, db_index=True)
    seller_id = models.CharField(max_length=128, db_index=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING_APPROVAL)

    # Amounts (settlement currency)
    subtotal = models.DecimalField(max_digits=14, decimal_places=2)
    handling_fee = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    buyer_protection_fee = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    tax_fee = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    admin_amount = models.DecimalField(max_digits=14, decimal_places=2)
    seller_amount = models.DecimalField(max_digits=14, decimal_places=2)
    currency = models.CharField(max_length=3, default="NGN")

    # Payment
    payment_reference = models.CharField(max_length=255, db_index=True)

    # Shipping Information
    shipping_details = models.JSONField(default=dict)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "id"]
        app_label = "marketplace"
        unique_together = ["checkout_id", "seller_id"]
        indexes = [
            models.Index(fields=["buyer_id", "-created_at"]),
            models.Index(fields=["seller_id", "status"]),
        ]

    @staticmethod
    def build_id(checkout_id: str, seller_id: str) -> str:
        return f"{checkout_id}-{seller_id}"

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in self.STATUS_TRANSITIONS.get(self.status, set())

    def __str__(self):
        return f"Order {self.id} ({self.status})"


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")

    # Product snapshot at time of purchase
    product_id = models.CharField(max_length=64)
    product_name = models.CharField(max_length=200)
    category = models.CharField(max_length=100, blank=True, default="")

    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        ordering = ["id"]
        app_label = "marketplace"

    def __str__(self):
        return f"{self.quantity}x {self.product_name} in order {self.order_id}"
