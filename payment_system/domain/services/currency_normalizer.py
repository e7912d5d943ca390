"""
Currency normalization for charges.

Prices, fees and wallet balances are kept in the canonical currency (NGN).
A buyer may be charged in another currency; the canonical subtotal is
converted with the latest exchange rate and rounded half-up to the charge
currency's smallest unit. The rounded amount is what gets charged, and any
difference it introduces is reported back in canonical terms so settlement
can book it against the platform's share.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

from django.conf import settings

from payment_system.domain.exceptions import UnsupportedCurrencyError
from payment_system.domain.models import ExchangeRate


logger = logging.getLogger(__name__)

CANONICAL_CURRENCY = "NGN"

DEFAULT_EXPONENTS = {
    "NGN": 2,
    "GBP": 2,
    "USD": 2,
    "EUR": 2,
    "JPY": 0,
}

# Used only when the rate table has nothing for the pair
FALLBACK_RATES = {
    ("NGN", "GBP"): Decimal("0.0005"),
}


@dataclass(frozen=True)
class ChargeQuote:
    """
    A converted charge amount.

    Attributes:
        canonical_subtotal: Amount to collect, in the canonical currency
        canonical_currency: The canonical currency code
        currency: Charge currency code
        rate: Canonical -> charge currency rate used
        amount_minor: Amount to charge, in the charge currency's smallest unit
        exponent: Number of minor-unit digits of the charge currency
    """

    canonical_subtotal: Decimal
    canonical_currency: str
    currency: str
    rate: Decimal
    amount_minor: int
    exponent: int

    @property
    def amount(self) -> Decimal:
        return Decimal(self.amount_minor).scaleb(-self.exponent)

    @property
    def canonical_equivalent(self) -> Decimal:
        """The charged amount converted back to the canonical currency."""
        return (self.amount / self.rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    @property
    def rounding_drift(self) -> Decimal:
        """Canonical-currency difference between what is charged and what is owed."""
        return self.canonical_equivalent - self.canonical_subtotal


class CurrencyNormalizer:
    """
    Converts canonical subtotals into charge amounts.

    Args:
        canonical_currency: Currency of prices and balances (defaults to SETTLEMENT["CANONICAL_CURRENCY"])
        rates: Optional fixed rate table {target_currency: rate}; bypasses ExchangeRate lookups
        exponents: Optional minor-unit exponent table (defaults to CURRENCY_MINOR_UNIT_EXPONENTS)
    """

    def __init__(
        self,
        canonical_currency: Optional[str] = None,
        rates: Optional[Dict[str, Decimal]] = None,
        exponents: Optional[Dict[str, int]] = None,
    ):
        settlement_config = getattr(settings, "SETTLEMENT", {})
        self.canonical_currency = (
            canonical_currency or settlement_config.get("CANONICAL_CURRENCY", CANONICAL_CURRENCY)
        ).upper()
        self.rates = {code.upper(): Decimal(str(rate)) for code, rate in (rates or {}).items()}
        self.exponents = {
            code.upper(): int(exp)
            for code, exp in (exponents or getattr(settings, "CURRENCY_MINOR_UNIT_EXPONENTS", DEFAULT_EXPONENTS)).items()
        }

    def exponent_for(self, currency: str) -> int:
        try:
            return self.exponents[currency.upper()]
        except KeyError as e:
            raise UnsupportedCurrencyError(f"No minor unit defined for currency {currency}") from e

    def rate_for(self, currency: str) -> Decimal:
        """Rate from the canonical currency to ``currency``."""
        target = currency.upper()
        if target == self.canonical_currency:
            return Decimal("1")

        if target in self.rates:
            return self.rates[target]

        rate = ExchangeRate.objects.get_rate(self.canonical_currency, target)
        if rate is not None:
            return Decimal(str(rate))

        fallback = FALLBACK_RATES.get((self.canonical_currency, target))
        if fallback is not None:
            logger.warning(f"No stored rate for {self.canonical_currency}->{target}; using fallback {fallback}")
            return fallback

        raise UnsupportedCurrencyError(f"No exchange rate for {self.canonical_currency}->{target}")

    def quote(self, subtotal: Decimal, currency: str) -> ChargeQuote:
        """Convert a canonical subtotal into a charge quote."""
        target = currency.upper()
        exponent = self.exponent_for(target)
        rate = self.rate_for(target)

        converted = Decimal(subtotal) * rate
        amount_minor = int(converted.scaleb(exponent).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

        quote = ChargeQuote(
            canonical_subtotal=Decimal(subtotal).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
            canonical_currency=self.canonical_currency,
            currency=target,
            rate=rate,
            amount_minor=amount_minor,
            exponent=exponent,
        )
        logger.debug(
            f"Quoted {subtotal} {self.canonical_currency} as {amount_minor} minor units of {target} at rate {rate}"
        )
        return quote

    def to_charge(self, subtotal: Decimal, currency: str) -> int:
        """Amount to charge, in the smallest unit of ``currency``."""
        return self.quote(subtotal, currency).amount_minor
