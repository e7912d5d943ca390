"""
Response Serializers for Marketplace API Documentation

These serializers define the structure of API responses for OpenAPI schema generation.
They are NOT used for data validation, only for documentation in Swagger/ReDoc.
"""

from rest_framework import serializers

# ===== Common Response Serializers =====


class ErrorResponseSerializer(serializers.Serializer):
    """Standard error response"""

    error = serializers.CharField(help_text="Error code identifier")
    detail = serializers.CharField(help_text="Human-readable error message")


class SuccessResponseSerializer(serializers.Serializer):
    """Generic success response"""

    message = serializers.CharField(help_text="Success message")


# ===== Checkout Response Serializers =====


class CheckoutResponseSerializer(serializers.Serializer):
    """Checkout outcome"""

    checkout_id = serializers.CharField(help_text="Idempotency token of the checkout")
    order_ids = serializers.ListField(child=serializers.CharField(), help_text="One order per seller")
    already_settled = serializers.BooleanField(help_text="True when an earlier request already settled it")
    notification_warning = serializers.BooleanField(help_text="True when a confirmation may be delayed")
    warning = serializers.CharField(allow_null=True, help_text="Warning shown to the buyer")
    payment_reference = serializers.CharField(help_text="Payment processor reference")
    amount_charged = serializers.IntegerField(help_text="Charged amount in minor units")
    currency = serializers.CharField(help_text="Charge currency")


class OutcomeUnknownResponseSerializer(ErrorResponseSerializer):
    """Settlement may or may not have completed"""

    checkout_id = serializers.CharField(help_text="Retry with this checkout id to learn the outcome")
