from decimal import Decimal

import pytest
from django.core.exceptions import ImproperlyConfigured

from marketplace.cart.domain.services import CartLine
from payment_system.domain.services import FeeBreakdown, FeePolicy


def line(total, category=""):
    return CartLine(product_id="p", seller_id="s", quantity=1, unit_price=Decimal(total), category=category)


@pytest.mark.unit
class TestFeePolicy:
    def setup_method(self):
        self.policy = FeePolicy(
            {
                "default": {"handling_rate": "0.05", "buyer_protection_rate": "0.02", "tax_rate": "0.075"},
                "electronics": {"handling_rate": "0.08", "buyer_protection_rate": "0.03", "tax_rate": "0.075"},
            }
        )

    def test_default_rates(self):
        fees = self.policy.compute_fees(Decimal("2000"), "")

        assert fees.handling_fee == Decimal("100.00")
        assert fees.buyer_protection_fee == Decimal("40.00")
        assert fees.tax_fee == Decimal("150.00")
        assert fees.admin_amount == Decimal("290.00")
        assert fees.seller_amount == Decimal("1710.00")

    def test_fractional_fees_round_half_up(self):
        fees = self.policy.compute_fees(Decimal("500"), None)

        assert fees.admin_amount == Decimal("72.50")
        assert fees.seller_amount == Decimal("427.50")

    def test_parts_always_add_up_to_subtotal(self):
        for amount in ("0.01", "0.07", "1.13", "333.33", "999.99"):
            fees = self.policy.compute_fees(Decimal(amount), "")
            assert fees.admin_amount + fees.seller_amount == fees.subtotal

    def test_category_specific_rates(self):
        fees = self.policy.compute_fees(Decimal("1000"), "Electronics ")

        assert fees.handling_fee == Decimal("80.00")
        assert fees.buyer_protection_fee == Decimal("30.00")

    def test_unknown_category_falls_back_to_default(self):
        assert self.policy.rates_for("garden") == self.policy.default_rates

    def test_partition_fees_apply_each_line_category(self):
        fees = self.policy.compute_partition_fees([line("1000", "electronics"), line("1000", "books")])

        assert fees.subtotal == Decimal("2000.00")
        assert fees.handling_fee == Decimal("130.00")
        assert fees.buyer_protection_fee == Decimal("50.00")
        assert fees.tax_fee == Decimal("150.00")

    def test_breakdowns_add(self):
        total = FeeBreakdown.zero() + self.policy.compute_fees(Decimal("2000"), "")

        assert total.subtotal == Decimal("2000.00")
        assert total.to_dict()["seller_amount"] == "1710.00"


@pytest.mark.unit
class TestFeePolicyConfiguration:
    def test_missing_default_uses_builtin_rates(self):
        policy = FeePolicy({})

        assert policy.default_rates.total == Decimal("0.145")

    def test_rates_summing_to_one_are_rejected(self):
        with pytest.raises(ImproperlyConfigured, match="sum"):
            FeePolicy({"default": {"handling_rate": "0.5", "buyer_protection_rate": "0.3", "tax_rate": "0.2"}})

    def test_negative_rate_is_rejected(self):
        with pytest.raises(ImproperlyConfigured):
            FeePolicy({"default": {"handling_rate": "-0.01", "buyer_protection_rate": "0", "tax_rate": "0"}})

    def test_missing_rate_is_rejected(self):
        with pytest.raises(ImproperlyConfigured, match="tax_rate"):
            FeePolicy({"books": {"handling_rate": "0.05", "buyer_protection_rate": "0.02"}})

    def test_unknown_key_is_rejected(self):
        with pytest.raises(ImproperlyConfigured, match="unknown"):
            FeePolicy(
                {"default": {"handling_rate": "0.05", "buyer_protection_rate": "0.02", "tax_rate": "0", "vat": "0"}}
            )

    def test_non_numeric_rate_is_rejected(self):
        with pytest.raises(ImproperlyConfigured, match="non-numeric"):
            FeePolicy({"default": {"handling_rate": "abc", "buyer_protection_rate": "0", "tax_rate": "0"}})

    def test_from_settings(self, settings):
        settings.SETTLEMENT_FEE_POLICIES = {
            "default": {"handling_rate": "0.10", "buyer_protection_rate": "0", "tax_rate": "0"},
        }

        fees = FeePolicy.from_settings().compute_fees(Decimal("100"), "")

        assert fees.admin_amount == Decimal("10.00")
