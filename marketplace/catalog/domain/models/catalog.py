import uuid

from django.core.validators import MinValueValidator
from django.db import models


class Product(models.Model):
    """
    A sellable listing and its inventory record.

    ``stock_quantity`` is the inventory count the settlement coordinator
    decrements; ``version`` is bumped on every stock write so concurrent
    checkouts detect each other through conditional updates.
    """

    # Basic Information
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)

    # Seller and Category (seller ids come from the external identity provider)
    seller_id = models.CharField(max_length=128, blank=True, default="", db_index=True)
    category = models.CharField(max_length=100, blank=True, default="")

    # Pricing and Inventory (canonical currency)
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0.01)])
    stock_quantity = models.PositiveIntegerField(default=0)
    version = models.PositiveIntegerField(default=0)

    # Status
    is_active = models.BooleanField(default=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"
        indexes = [
            models.Index(fields=["seller_id", "is_active"]),
            models.Index(fields=["category", "is_active"]),
        ]

    def __str__(self):
        return self.name
