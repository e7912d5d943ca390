"""
CartPartitioner - Split a Cart by Seller

A checkout may span several independent sellers. Each seller receives its own
order, fee computation and wallet credit, so the cart is grouped into one
partition per seller before anything else happens.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from payment_system.domain.exceptions import EmptyCartError, InvalidQuantityError, MissingSellerError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartLine:
    """
    One line of a cart at checkout time.

    Attributes:
        product_id: Product identifier
        seller_id: Seller the product belongs to
        quantity: Units requested
        unit_price: Price per unit in the canonical currency
        category: Product category (drives fee rates)
        product_name: Name snapshot for the order record
    """

    product_id: str
    seller_id: Optional[str]
    quantity: int
    unit_price: Decimal
    category: str = ""
    product_name: str = ""

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_cart_item(cls, item) -> "CartLine":
        """Snapshot a CartItem (and its product) into a CartLine."""
        product = item.product
        return cls(
            product_id=str(product.id),
            seller_id=product.seller_id,
            quantity=item.quantity,
            unit_price=Decimal(str(product.price)),
            category=product.category,
            product_name=product.name,
        )


@dataclass
class SellerPartition:
    seller_id: str
    items: List[CartLine] = field(default_factory=list)

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self.items), Decimal("0"))


class CartPartitioner:
    """
    Groups cart lines by seller.

    Deterministic: partitions come out in the order each seller first appears
    in the cart, and lines keep their cart order inside a partition.
    """

    def partition(self, cart: Iterable[CartLine]) -> List[SellerPartition]:
        """
        Args:
            cart: Cart lines to group

        Returns:
            One SellerPartition per distinct seller

        Raises:
            EmptyCartError: The cart has no lines
            MissingSellerError: A line has no seller
            InvalidQuantityError: A line has a non-positive quantity or unit price
        """
        lines = list(cart)
        if not lines:
            raise EmptyCartError("Cannot check out an empty cart")

        partitions: Dict[str, SellerPartition] = {}
        for line in lines:
            if line.quantity <= 0:
                raise InvalidQuantityError(
                    f"Quantity for product {line.product_id} must be positive, got {line.quantity}",
                    product_id=line.product_id,
                )
            if line.unit_price <= 0:
                raise InvalidQuantityError(
                    f"Unit price for product {line.product_id} must be positive, got {line.unit_price}",
                    product_id=line.product_id,
                )
            seller_id = (line.seller_id or "").strip()
            if not seller_id:
                raise MissingSellerError(
                    f"Product {line.product_id} has no seller associated", product_id=line.product_id
                )
            partitions.setdefault(seller_id, SellerPartition(seller_id=seller_id)).items.append(line)

        logger.debug(f"Partitioned {len(lines)} cart lines into {len(partitions)} seller partitions")
        return list(partitions.values())
