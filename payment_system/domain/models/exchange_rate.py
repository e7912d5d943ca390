import logging
from decimal import Decimal

from django.db import models
from django.utils import timezone


logger = logging.getLogger(__name__)


class ExchangeRateManager(models.Manager):
    """Custom manager for ExchangeRate model."""

    def get_rate(self, base_currency, target_currency):
        """
        Get the latest active exchange rate for a currency pair.

        Args:
            base_currency (str): Base currency code
            target_currency (str): Target currency code

        Returns:
            Decimal or None: Exchange rate or None if not found
        """
        base_upper = base_currency.upper()
        target_upper = target_currency.upper()

        latest_rate = (
            self.filter(base_currency=base_upper, target_currency=target_upper, is_active=True)
            .order_by("-created_at")
            .first()
        )

        if latest_rate is None:
            logger.debug(f"No rate found for {base_upper}->{target_upper}")
            return None

        return latest_rate.rate

    def get_latest_rates(self, base_currency="NGN"):
        """
        Get the latest exchange rate per target currency for a base currency.

        Returns:
            dict: Target currency code -> Decimal rate
        """
        rates = {}
        for rate in self.filter(base_currency=base_currency.upper(), is_active=True).order_by("-created_at"):
            rates.setdefault(rate.target_currency, rate.rate)
        return rates

    def is_data_fresh(self, max_age_hours=24):
        """Check if the newest rate is younger than max_age_hours."""
        latest_rate = self.order_by("-created_at").first()

        if not latest_rate:
            return False

        age = timezone.now() - latest_rate.created_at
        return age.total_seconds() < (max_age_hours * 3600)


class ExchangeRate(models.Model):
    """
    Currency exchange rates, refreshed out-of-band.

    Each row is one observation; the newest active row for a pair wins.
    """

    base_currency = models.CharField(max_length=3, help_text="Base currency code (e.g., NGN)")

    target_currency = models.CharField(max_length=3, help_text="Target currency code (e.g., GBP)")

    rate = models.DecimalField(max_digits=18, decimal_places=8, help_text="Exchange rate from base to target currency")

    created_at = models.DateTimeField(default=timezone.now, help_text="When this rate was recorded")

    source = models.CharField(max_length=100, default="manual", help_text="Source of this exchange rate data")

    is_active = models.BooleanField(default=True, help_text="Whether this rate is currently active")

    objects = ExchangeRateManager()

    class Meta:
        db_table = "payment_exchange_rates"
        verbose_name = "Exchange Rate"
        verbose_name_plural = "Exchange Rates"
        unique_together = ["base_currency", "target_currency", "created_at"]
        indexes = [
            models.Index(fields=["base_currency", "target_currency", "-created_at"]),
        ]
        ordering = ["-created_at", "base_currency", "target_currency"]

    def __str__(self):
        return f"{self.base_currency}/{self.target_currency}: {self.rate} ({self.created_at.date()})"

    def save(self, *args, **kwargs):
        """Override save to ensure currency codes are uppercase."""
        self.base_currency = self.base_currency.upper()
        self.target_currency = self.target_currency.upper()
        super().save(*args, **kwargs)

    @property
    def age_hours(self):
        """Get the age of this rate in hours."""
        return (timezone.now() - self.created_at).total_seconds() / 3600

    @classmethod
    def bulk_create_rates(cls, base_currency, rates_dict, source="api"):
        """
        Bulk create exchange rates for a base currency.

        Args:
            base_currency (str): Base currency code
            rates_dict (dict): Dictionary of target_currency -> rate
            source (str): Source of the data

        Returns:
            int: Number of rates created
        """
        batch_time = timezone.now()

        rate_objects = [
            cls(
                base_currency=base_currency.upper(),
                target_currency=target_currency.upper(),
                rate=Decimal(str(rate)),
                created_at=batch_time,
                source=source,
            )
            for target_currency, rate in rates_dict.items()
            if target_currency.upper() != base_currency.upper()  # Skip self-rates
        ]

        created_rates = cls.objects.bulk_create(rate_objects, ignore_conflicts=True)
        return len(created_rates)
