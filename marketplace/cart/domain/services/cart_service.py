"""
CartService - Shopping Cart Operations

Handles cart add, remove, update and clear for a buyer, and snapshots the
cart into CartLines for checkout.

Stock is only *read* here (to reject obviously impossible quantities early);
the settlement coordinator is the only writer of stock.
"""

import logging
from decimal import Decimal
from typing import Dict, List

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from marketplace.cart.domain.models import Cart, CartItem
from marketplace.cart.domain.services.partition_service import CartLine
from marketplace.catalog.domain.models import Product
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok


logger = logging.getLogger(__name__)


class CartService(BaseService):
    """
    Service for managing shopping cart operations.

    Responsibilities:
    - Get a buyer's cart
    - Add items to cart (with stock validation)
    - Remove items from cart
    - Update item quantities
    - Clear cart
    - Produce checkout lines
    """

    @BaseService.log_performance
    def get_cart(self, buyer_id: str) -> ServiceResult[Dict]:
        """
        Get buyer's shopping cart with items and subtotal.

        Example:
            >>> result = cart_service.get_cart("buyer-1")
            >>> if result.ok:
            ...     items = result.value["items"]
        """
        try:
            cart, _ = Cart.objects.get_or_create(buyer_id=buyer_id)
            cart_items = list(cart.items.select_related("product"))

            items_data = [
                {
                    "id": cart_item.id,
                    "product": cart_item.product,
                    "quantity": cart_item.quantity,
                    "total_price": cart_item.total_price,
                    "added_at": cart_item.added_at,
                }
                for cart_item in cart_items
            ]
            subtotal = sum((item["total_price"] for item in items_data), Decimal("0"))

            self.logger.info(f"Retrieved cart for buyer {buyer_id}: {len(items_data)} items")

            return service_ok(
                {
                    "id": cart.id,
                    "buyer_id": buyer_id,
                    "items": items_data,
                    "items_count": len(items_data),
                    "subtotal": subtotal,
                    "created_at": cart.created_at,
                    "updated_at": cart.updated_at,
                }
            )

        except Exception as e:
            self.logger.error(f"Error getting cart for buyer {buyer_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    @transaction.atomic
    def add_to_cart(self, buyer_id: str, product_id: str, quantity: int = 1) -> ServiceResult[Dict]:
        """
        Add item to cart (with stock validation).

        Products without a seller are refused here so a cart can never hold an
        item that settlement could not attribute.
        """
        if quantity <= 0:
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be positive")

        try:
            product = Product.objects.get(id=product_id, is_active=True)
        except (Product.DoesNotExist, ValueError, DjangoValidationError):
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found or inactive")

        if not product.seller_id:
            return service_err(ErrorCodes.MISSING_SELLER, f"Product {product_id} has no seller associated")

        cart, _ = Cart.objects.get_or_create(buyer_id=buyer_id)
        cart_item = CartItem.objects.filter(cart=cart, product=product).first()

        new_quantity = (cart_item.quantity if cart_item else 0) + quantity
        if new_quantity > product.stock_quantity:
            return service_err(
                ErrorCodes.INSUFFICIENT_STOCK,
                f"Insufficient stock for {product.name}. Requested: {new_quantity}, available: {product.stock_quantity}",
            )

        if cart_item is None:
            CartItem.objects.create(cart=cart, product=product, quantity=new_quantity)
        else:
            cart_item.quantity = new_quantity
            cart_item.save(update_fields=["quantity"])

        self.logger.info(f"Cart for buyer {buyer_id}: {product.name} quantity now {new_quantity}")

        return self.get_cart(buyer_id)

    @BaseService.log_performance
    @transaction.atomic
    def update_quantity(self, buyer_id: str, product_id: str, quantity: int) -> ServiceResult[Dict]:
        """Set the quantity of an item already in the cart."""
        if quantity <= 0:
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be positive")

        try:
            cart_item = CartItem.objects.select_related("product").get(
                cart__buyer_id=buyer_id, product_id=product_id
            )
        except (CartItem.DoesNotExist, ValueError, DjangoValidationError):
            return service_err(ErrorCodes.ITEM_NOT_IN_CART, f"Product {product_id} not in cart")

        if quantity > cart_item.product.stock_quantity:
            return service_err(
                ErrorCodes.INSUFFICIENT_STOCK,
                f"Insufficient stock. Requested: {quantity}, Available: {cart_item.product.stock_quantity}",
            )

        old_quantity = cart_item.quantity
        cart_item.quantity = quantity
        cart_item.save(update_fields=["quantity"])

        self.logger.info(
            f"Updated cart quantity for buyer {buyer_id}: {cart_item.product.name} {old_quantity} -> {quantity}"
        )

        return self.get_cart(buyer_id)

    @BaseService.log_performance
    @transaction.atomic
    def remove_from_cart(self, buyer_id: str, product_id: str) -> ServiceResult[Dict]:
        """Remove item from cart."""
        deleted, _ = CartItem.objects.filter(cart__buyer_id=buyer_id, product_id=product_id).delete()
        if not deleted:
            return service_err(ErrorCodes.ITEM_NOT_IN_CART, f"Product {product_id} not in cart")

        self.logger.info(f"Removed product {product_id} from cart for buyer {buyer_id}")
        return self.get_cart(buyer_id)

    @BaseService.log_performance
    def clear_cart(self, buyer_id: str) -> ServiceResult[bool]:
        """
        Clear all items from cart.

        Returns:
            ServiceResult with True if cleared (also when no cart exists)
        """
        try:
            deleted, _ = CartItem.objects.filter(cart__buyer_id=buyer_id).delete()
            self.logger.info(f"Cleared cart for buyer {buyer_id}: {deleted} items removed")
            return service_ok(True)

        except Exception as e:
            self.logger.error(f"Error clearing cart for buyer {buyer_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def get_checkout_lines(self, buyer_id: str) -> List[CartLine]:
        """Snapshot the buyer's cart into CartLines (empty list when there is no cart)."""
        items = CartItem.objects.filter(cart__buyer_id=buyer_id).select_related("product").order_by("added_at", "id")
        return [CartLine.from_cart_item(item) for item in items]
