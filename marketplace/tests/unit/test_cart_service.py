from decimal import Decimal

import pytest

from marketplace.cart.domain.services import CartService
from marketplace.models import CartItem
from marketplace.services import ErrorCodes
from marketplace.tests.factories import CartFactory, CartItemFactory, ProductFactory


@pytest.mark.django_db
class TestCartService:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = CartService()
        self.product = ProductFactory(seller_id="S1", price=Decimal("250.00"), stock_quantity=5)

    def test_get_cart_creates_empty_cart(self):
        result = self.service.get_cart("buyer_1")

        assert result.ok
        assert result.value["items_count"] == 0
        assert result.value["subtotal"] == Decimal("0")

    def test_add_to_cart(self):
        result = self.service.add_to_cart("buyer_1", str(self.product.id), 2)

        assert result.ok
        assert result.value["items_count"] == 1
        assert result.value["subtotal"] == Decimal("500.00")

    def test_adding_again_accumulates_quantity(self):
        self.service.add_to_cart("buyer_1", str(self.product.id), 2)
        self.service.add_to_cart("buyer_1", str(self.product.id), 1)

        assert CartItem.objects.get(cart__buyer_id="buyer_1").quantity == 3

    def test_add_more_than_stock(self):
        result = self.service.add_to_cart("buyer_1", str(self.product.id), 6)

        assert not result.ok
        assert result.error == ErrorCodes.INSUFFICIENT_STOCK

    def test_add_product_without_seller(self):
        orphan = ProductFactory(seller_id="")

        result = self.service.add_to_cart("buyer_1", str(orphan.id), 1)

        assert result.error == ErrorCodes.MISSING_SELLER

    def test_add_inactive_product(self):
        inactive = ProductFactory(is_active=False)

        result = self.service.add_to_cart("buyer_1", str(inactive.id), 1)

        assert result.error == ErrorCodes.PRODUCT_NOT_FOUND

    def test_add_malformed_product_id(self):
        result = self.service.add_to_cart("buyer_1", "not-a-uuid", 1)

        assert result.error == ErrorCodes.PRODUCT_NOT_FOUND

    def test_add_zero_quantity(self):
        result = self.service.add_to_cart("buyer_1", str(self.product.id), 0)

        assert result.error == ErrorCodes.INVALID_QUANTITY

    def test_update_quantity(self):
        CartItemFactory(cart=CartFactory(buyer_id="buyer_1"), product=self.product, quantity=1)

        result = self.service.update_quantity("buyer_1", str(self.product.id), 4)

        assert result.ok
        assert result.value["items"][0]["quantity"] == 4

    def test_update_item_not_in_cart(self):
        result = self.service.update_quantity("buyer_1", str(self.product.id), 1)

        assert result.error == ErrorCodes.ITEM_NOT_IN_CART

    def test_remove_from_cart(self):
        CartItemFactory(cart=CartFactory(buyer_id="buyer_1"), product=self.product)

        result = self.service.remove_from_cart("buyer_1", str(self.product.id))

        assert result.ok
        assert result.value["items_count"] == 0

    def test_clear_cart(self):
        cart = CartFactory(buyer_id="buyer_1")
        CartItemFactory(cart=cart, product=self.product)
        CartItemFactory(cart=cart)

        result = self.service.clear_cart("buyer_1")

        assert result.ok
        assert not CartItem.objects.filter(cart=cart).exists()

    def test_checkout_lines_snapshot_products(self):
        self.product.category = "electronics"
        self.product.save()
        CartItemFactory(cart=CartFactory(buyer_id="buyer_1"), product=self.product, quantity=2)

        lines = self.service.get_checkout_lines("buyer_1")

        assert len(lines) == 1
        assert lines[0].product_id == str(self.product.id)
        assert lines[0].seller_id == "S1"
        assert lines[0].category == "electronics"
        assert lines[0].line_total == Decimal("500.00")

    def test_checkout_lines_without_cart(self):
        assert self.service.get_checkout_lines("nobody") == []
