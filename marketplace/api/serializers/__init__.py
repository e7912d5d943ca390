# Marketplace API Serializers

# Import response serializers for API documentation
from .response_serializers import (
    CheckoutResponseSerializer,
    ErrorResponseSerializer,
    OutcomeUnknownResponseSerializer,
    SuccessResponseSerializer,
)


__all__ = [
    # Response serializers for documentation
    "CheckoutResponseSerializer",
    "ErrorResponseSerializer",
    "OutcomeUnknownResponseSerializer",
    "SuccessResponseSerializer",
]
