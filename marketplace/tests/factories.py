import uuid
from decimal import Decimal

import factory
from django.contrib.auth import get_user_model
from faker import Faker

from marketplace.cart.domain.services import CartLine, SellerPartition
from marketplace.models import Cart, CartItem, Order, OrderItem, Product
from payment_system.models import ExchangeRate, PaymentTracker, SellerWallet

User = get_user_model()
fake = Faker()


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = User

    username = factory.Sequence(lambda n: f"user_{n}")
    email = factory.Sequence(lambda n: f"user_{n}@example.com")
    password = factory.PostGenerationMethodCall("set_password", "defaultpassword")
    is_active = True


class ProductFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Product

    id = factory.LazyFunction(uuid.uuid4)
    name = factory.Sequence(lambda n: f"Product {n}")
    description = factory.Faker("paragraph", nb_sentences=3)
    seller_id = factory.Sequence(lambda n: f"seller_{n}")
    category = ""
    price = Decimal("100.00")
    stock_quantity = 10
    is_active = True


class CartFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Cart

    buyer_id = factory.Sequence(lambda n: f"buyer_{n}")


class CartItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = CartItem

    cart = factory.SubFactory(CartFactory)
    product = factory.SubFactory(ProductFactory)
    quantity = 1


class OrderFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Order

    checkout_id = factory.Sequence(lambda n: f"chk_test_{n}")
    buyer_id = "buyer_1"
    seller_id = "seller_1"
    id = factory.LazyAttribute(lambda o: Order.build_id(o.checkout_id, o.seller_id))
    subtotal = Decimal("1000.00")
    handling_fee = Decimal("50.00")
    buyer_protection_fee = Decimal("20.00")
    tax_fee = Decimal("75.00")
    admin_amount = Decimal("145.00")
    seller_amount = Decimal("855.00")
    currency = "NGN"
    payment_reference = factory.Sequence(lambda n: f"pi_test_{n}")
    shipping_details = factory.LazyFunction(
        lambda: {
            "name": fake.name(),
            "email": fake.email(),
            "phone": fake.phone_number(),
            "address": fake.street_address(),
            "city": fake.city(),
            "postal_code": fake.postcode(),
            "country": fake.country(),
        }
    )


class OrderItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = OrderItem

    order = factory.SubFactory(OrderFactory)
    product_id = factory.LazyFunction(lambda: str(uuid.uuid4()))
    product_name = factory.Sequence(lambda n: f"Product {n}")
    quantity = 1
    unit_price = Decimal("1000.00")
    total_price = factory.LazyAttribute(lambda o: o.unit_price * o.quantity)


class SellerWalletFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = SellerWallet

    seller_id = factory.Sequence(lambda n: f"seller_{n}")
    available_balance = Decimal("0.00")
    currency = "NGN"


class PaymentTrackerFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = PaymentTracker

    checkout_id = factory.Sequence(lambda n: f"chk_test_{n}")
    buyer_id = "buyer_1"
    provider = "MockPaymentProvider"
    payment_reference = factory.Sequence(lambda n: f"pi_test_{n}")
    status = PaymentTracker.STATUS_SUCCEEDED
    amount_minor = 250000
    currency = "NGN"


class ExchangeRateFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ExchangeRate

    base_currency = "NGN"
    target_currency = "GBP"
    rate = Decimal("0.0005")
    source = "test_factory"


def shipping_info(**overrides):
    info = {
        "name": "Ada Buyer",
        "email": "ada@example.com",
        "phone": "+2348000000000",
        "address": "1 Marina Road",
        "city": "Lagos",
        "postal_code": "100001",
        "country": "NG",
    }
    info.update(overrides)
    return info


def cart_line(product, quantity=1):
    """CartLine snapshot of a saved product."""
    return CartLine(
        product_id=str(product.id),
        seller_id=product.seller_id,
        quantity=quantity,
        unit_price=product.price,
        category=product.category,
        product_name=product.name,
    )


def partition_for(seller_id, *lines):
    return SellerPartition(seller_id=seller_id, items=list(lines))
