from rest_framework import serializers

from marketplace.ordering.domain.models.order import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "category",
            "quantity",
            "unit_price",
            "total_price",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "checkout_id",
            "buyer_id",
            "seller_id",
            "status",
            "subtotal",
            "handling_fee",
            "buyer_protection_fee",
            "tax_fee",
            "admin_amount",
            "seller_amount",
            "currency",
            "payment_reference",
            "shipping_details",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[choice for choice, _ in Order.STATUS_CHOICES])


class ShippingInfoSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    email = serializers.CharField(max_length=254)
    phone = serializers.CharField(max_length=32)
    address = serializers.CharField(max_length=500)
    city = serializers.CharField(max_length=100)
    postal_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=100)


class CheckoutRequestSerializer(serializers.Serializer):
    checkout_id = serializers.RegexField(
        r"^[A-Za-z0-9_-]{8,128}$",
        required=False,
        help_text="Idempotency token; reuse it when retrying the same checkout",
    )
    shipping_info = ShippingInfoSerializer()
    currency = serializers.CharField(max_length=3, min_length=3, required=False)
    payment_method = serializers.CharField(max_length=255, required=False)
