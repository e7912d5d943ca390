"""
FeePolicy - Marketplace Fee Calculation

Maps a product category to its handling, buyer-protection and tax rates and
splits a subtotal into the platform's share and the seller's share.

Rates come from ``settings.SETTLEMENT_FEE_POLICIES``:

    SETTLEMENT_FEE_POLICIES = {
        "default": {"handling_rate": "0.05", "buyer_protection_rate": "0.02", "tax_rate": "0.075"},
        "electronics": {...},
    }

They are validated once, when the policy is built; a policy whose rates could
leave a seller with a negative amount raises ``ImproperlyConfigured``.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, Mapping, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


logger = logging.getLogger(__name__)

MINOR_UNIT = Decimal("0.01")
ZERO = Decimal("0.00")

DEFAULT_POLICY_NAME = "default"
RATE_FIELDS = ("handling_rate", "buyer_protection_rate", "tax_rate")

DEFAULT_RATES = {
    "handling_rate": Decimal("0.05"),
    "buyer_protection_rate": Decimal("0.02"),
    "tax_rate": Decimal("0.075"),
}


def quantize_money(amount: Decimal) -> Decimal:
    """Round to the minor unit, half-up."""
    return Decimal(amount).quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FeeRates:
    handling_rate: Decimal
    buyer_protection_rate: Decimal
    tax_rate: Decimal

    @property
    def total(self) -> Decimal:
        return self.handling_rate + self.buyer_protection_rate + self.tax_rate


@dataclass(frozen=True)
class FeeBreakdown:
    """
    Fees charged on one subtotal.

    Attributes:
        subtotal: Amount the fees were computed on
        handling_fee: Platform handling fee
        buyer_protection_fee: Buyer protection fee
        tax_fee: Tax collected by the platform
    """

    subtotal: Decimal
    handling_fee: Decimal
    buyer_protection_fee: Decimal
    tax_fee: Decimal

    @property
    def admin_amount(self) -> Decimal:
        return self.handling_fee + self.buyer_protection_fee + self.tax_fee

    @property
    def seller_amount(self) -> Decimal:
        return self.subtotal - self.admin_amount

    def __add__(self, other: "FeeBreakdown") -> "FeeBreakdown":
        return FeeBreakdown(
            subtotal=self.subtotal + other.subtotal,
            handling_fee=self.handling_fee + other.handling_fee,
            buyer_protection_fee=self.buyer_protection_fee + other.buyer_protection_fee,
            tax_fee=self.tax_fee + other.tax_fee,
        )

    @classmethod
    def zero(cls) -> "FeeBreakdown":
        return cls(subtotal=ZERO, handling_fee=ZERO, buyer_protection_fee=ZERO, tax_fee=ZERO)

    def to_dict(self) -> Dict[str, str]:
        return {
            "subtotal": str(self.subtotal),
            "handling_fee": str(self.handling_fee),
            "buyer_protection_fee": str(self.buyer_protection_fee),
            "tax_fee": str(self.tax_fee),
            "admin_amount": str(self.admin_amount),
            "seller_amount": str(self.seller_amount),
        }


def _parse_rates(name: str, raw: Mapping) -> FeeRates:
    if not isinstance(raw, Mapping):
        raise ImproperlyConfigured(f"Fee policy '{name}' must be a mapping of rates")

    unknown = set(raw) - set(RATE_FIELDS)
    if unknown:
        raise ImproperlyConfigured(f"Fee policy '{name}' has unknown keys: {sorted(unknown)}")

    values = {}
    for field in RATE_FIELDS:
        if field not in raw:
            raise ImproperlyConfigured(f"Fee policy '{name}' is missing '{field}'")
        try:
            rate = Decimal(str(raw[field]))
        except InvalidOperation as e:
            raise ImproperlyConfigured(f"Fee policy '{name}' has a non-numeric {field}: {raw[field]!r}") from e
        if not (Decimal("0") <= rate < Decimal("1")):
            raise ImproperlyConfigured(f"Fee policy '{name}' {field}={rate} must be in [0, 1)")
        values[field] = rate

    rates = FeeRates(**values)
    if rates.total >= Decimal("1"):
        raise ImproperlyConfigured(f"Fee policy '{name}' rates sum to {rates.total}; they must sum to less than 1")
    return rates


class FeePolicy:
    """
    Category-keyed fee rates with a default fallback.

    Pure: no I/O and no failure modes once constructed.
    """

    def __init__(self, policies: Optional[Mapping[str, Mapping]] = None):
        policies = dict(policies or {})
        default_raw = policies.pop(DEFAULT_POLICY_NAME, DEFAULT_RATES)

        self.default_rates = _parse_rates(DEFAULT_POLICY_NAME, default_raw)
        self.category_rates: Dict[str, FeeRates] = {
            self._normalize_category(category): _parse_rates(category, raw) for category, raw in policies.items()
        }

        logger.debug(
            f"Fee policy loaded: default={self.default_rates}, categories={sorted(self.category_rates) or 'none'}"
        )

    @classmethod
    def from_settings(cls) -> "FeePolicy":
        """Build the policy from settings.SETTLEMENT_FEE_POLICIES (raises ImproperlyConfigured when invalid)."""
        return cls(getattr(settings, "SETTLEMENT_FEE_POLICIES", None))

    @staticmethod
    def _normalize_category(category: Optional[str]) -> str:
        return (category or "").strip().lower()

    def rates_for(self, category: Optional[str]) -> FeeRates:
        return self.category_rates.get(self._normalize_category(category), self.default_rates)

    def compute_fees(self, subtotal: Decimal, category: Optional[str]) -> FeeBreakdown:
        """
        Compute the fees on a subtotal using the category's rates.

        Each fee is rounded half-up to the minor unit on its own; the seller
        amount is whatever remains, so the parts always add back up to the
        subtotal exactly.
        """
        rates = self.rates_for(category)
        subtotal = quantize_money(subtotal)
        return FeeBreakdown(
            subtotal=subtotal,
            handling_fee=quantize_money(subtotal * rates.handling_rate),
            buyer_protection_fee=quantize_money(subtotal * rates.buyer_protection_rate),
            tax_fee=quantize_money(subtotal * rates.tax_rate),
        )

    def compute_partition_fees(self, lines: Iterable) -> FeeBreakdown:
        """
        Fees for one seller's partition.

        Lines are grouped by their own category so a partition mixing
        categories is charged each category's rates on that category's share.
        Each line needs ``category`` and ``line_total``.
        """
        subtotals: "OrderedDict[str, Decimal]" = OrderedDict()
        for line in lines:
            key = self._normalize_category(line.category)
            subtotals[key] = subtotals.get(key, ZERO) + line.line_total

        breakdown = FeeBreakdown.zero()
        for category, subtotal in subtotals.items():
            breakdown = breakdown + self.compute_fees(subtotal, category)
        return breakdown
