from rest_framework import serializers

from marketplace.catalog.domain.models import Product


class CartProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "name", "seller_id", "category", "price", "stock_quantity", "is_active"]
        read_only_fields = fields


class CartItemOutputSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    product = CartProductSerializer()
    quantity = serializers.IntegerField()
    total_price = serializers.DecimalField(max_digits=14, decimal_places=2)
    added_at = serializers.DateTimeField()


class CartOutputSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    buyer_id = serializers.CharField()
    items = CartItemOutputSerializer(many=True)
    items_count = serializers.IntegerField()
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class AddToCartRequestSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class UpdateCartRequestSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=0)


class RemoveFromCartRequestSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
