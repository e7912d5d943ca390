from .cart_serializers import (
    AddToCartRequestSerializer,
    CartItemOutputSerializer,
    CartOutputSerializer,
    CartProductSerializer,
    RemoveFromCartRequestSerializer,
    UpdateCartRequestSerializer,
)

__all__ = [
    "AddToCartRequestSerializer",
    "CartItemOutputSerializer",
    "CartOutputSerializer",
    "CartProductSerializer",
    "RemoveFromCartRequestSerializer",
    "UpdateCartRequestSerializer",
]
