from .cart_service import CartService
from .partition_service import CartLine, CartPartitioner, SellerPartition

__all__ = [
    "CartService",
    "CartLine",
    "CartPartitioner",
    "SellerPartition",
]
