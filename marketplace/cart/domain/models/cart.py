from django.db import models

from marketplace.catalog.domain.models.catalog import Product


class Cart(models.Model):
    buyer_id = models.CharField(max_length=128, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Shopping Cart"
        verbose_name_plural = "Shopping Carts"
        app_label = "marketplace"

    @classmethod
    def get_or_create_cart(cls, buyer_id):
        """Get existing cart or create a new one for the buyer."""
        cart, _ = cls.objects.get_or_create(buyer_id=buyer_id)
        return cart

    def __str__(self):
        return f"Cart for {self.buyer_id}"


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.CASCADE)
    quantity = models.PositiveIntegerField(default=1)
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ["cart", "product"]
        ordering = ["added_at", "id"]
        app_label = "marketplace"

    @property
    def total_price(self):
        return self.quantity * self.product.price

    def __str__(self):
        return f"{self.quantity}x {self.product.name} in {self.cart.buyer_id}'s cart"
