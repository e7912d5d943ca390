from unittest.mock import MagicMock

import pytest

from infrastructure.payments import (
    ChargeConfirmation,
    ChargeIntent,
    MockPaymentProvider,
    PaymentDeclinedException,
    PaymentException,
    PaymentStatus,
    PaymentTransientException,
)
from marketplace.tests.factories import PaymentTrackerFactory
from payment_system.domain.exceptions import (
    CheckoutConflictError,
    PaymentDeclinedError,
    PaymentError,
    PaymentTransientError,
    ValidationError,
)
from payment_system.domain.services import PaymentGatewayAdapter
from payment_system.models import PaymentTracker


def operations(provider):
    return [name for name, _ in provider.calls]


@pytest.mark.unit
class TestPaymentGatewayCharge:
    def setup_method(self):
        self.provider = MockPaymentProvider()
        self.gateway = PaymentGatewayAdapter(provider=self.provider, attempts=3, base_delay=0)

    def test_successful_charge(self):
        result = self.gateway.charge(250000, "ngn", {"checkout_id": "chk_1"})

        assert result.status == PaymentStatus.SUCCEEDED
        assert result.amount_charged == 250000
        assert result.currency == "NGN"
        assert result.reference.startswith("pi_mock_")
        assert operations(self.provider) == ["create_charge", "confirm_charge"]

    def test_checkout_id_is_the_idempotency_key(self):
        self.gateway.charge(100, "NGN", {"checkout_id": "chk_1"})

        assert all(kwargs["idempotency_key"] == "chk_1" for _, kwargs in self.provider.calls)

    def test_transient_failures_are_retried(self):
        self.provider.fail_next(PaymentTransientException("timeout"), PaymentTransientException("timeout"))

        result = self.gateway.charge(100, "NGN", {"checkout_id": "chk_1"})

        assert result.status == PaymentStatus.SUCCEEDED
        assert operations(self.provider) == ["create_charge"] * 3 + ["confirm_charge"]

    def test_transient_failures_exhaust_after_three_attempts(self):
        self.provider.fail_next(*[PaymentTransientException("timeout")] * 3)

        with pytest.raises(PaymentTransientError):
            self.gateway.charge(100, "NGN", {"checkout_id": "chk_1"})
        assert operations(self.provider) == ["create_charge"] * 3

    def test_decline_is_not_retried(self):
        with pytest.raises(PaymentDeclinedError) as exc_info:
            self.gateway.charge(100, "NGN", {"checkout_id": "chk_1"}, payment_method="pm_card_declined")

        assert exc_info.value.decline_code == "card_declined"
        assert operations(self.provider) == ["create_charge", "confirm_charge"]

    def test_declined_confirmation_status_raises(self):
        provider = MagicMock()
        provider.create_charge.return_value = ChargeIntent("pi_1", 100, "ngn", PaymentStatus.REQUIRES_CONFIRMATION)
        provider.confirm_charge.return_value = ChargeConfirmation(
            "pi_1", PaymentStatus.DECLINED, 100, "ngn", decline_code="insufficient_funds", message="No funds"
        )
        gateway = PaymentGatewayAdapter(provider=provider, attempts=3, base_delay=0)

        with pytest.raises(PaymentDeclinedError) as exc_info:
            gateway.charge(100, "NGN", {"checkout_id": "chk_1"})

        assert exc_info.value.decline_code == "insufficient_funds"
        assert exc_info.value.reference == "pi_1"

    def test_unfinished_payment_is_an_error(self):
        provider = MagicMock()
        provider.create_charge.return_value = ChargeIntent("pi_1", 100, "ngn", PaymentStatus.REQUIRES_CONFIRMATION)
        provider.confirm_charge.return_value = ChargeConfirmation("pi_1", PaymentStatus.REQUIRES_ACTION, 100, "ngn")
        gateway = PaymentGatewayAdapter(provider=provider, attempts=3, base_delay=0)

        with pytest.raises(PaymentError):
            gateway.charge(100, "NGN", {"checkout_id": "chk_1"})

    def test_already_succeeded_intent_skips_confirmation(self):
        provider = MagicMock()
        provider.create_charge.return_value = ChargeIntent("pi_1", 100, "ngn", PaymentStatus.SUCCEEDED)
        gateway = PaymentGatewayAdapter(provider=provider, attempts=3, base_delay=0)

        result = gateway.charge(100, "NGN", {"checkout_id": "chk_1"})

        assert result.reference == "pi_1"
        provider.confirm_charge.assert_not_called()

    def test_generic_provider_failure(self):
        self.provider.fail_next(PaymentException("bad key"))

        with pytest.raises(PaymentError) as exc_info:
            self.gateway.charge(100, "NGN", {"checkout_id": "chk_1"})

        assert not isinstance(exc_info.value, (PaymentDeclinedError, PaymentTransientError))
        assert len(self.provider.calls) == 1

    def test_requires_checkout_id(self):
        with pytest.raises(ValidationError):
            self.gateway.charge(100, "NGN", {})
        assert self.provider.calls == []

    def test_requires_positive_amount(self):
        with pytest.raises(ValidationError):
            self.gateway.charge(0, "NGN", {"checkout_id": "chk_1"})


@pytest.mark.django_db
class TestPaymentGatewayChargeOnce:
    def setup_method(self):
        self.provider = MockPaymentProvider()
        self.gateway = PaymentGatewayAdapter(provider=self.provider, attempts=3, base_delay=0)

    def test_records_success(self):
        result = self.gateway.charge_once("chk_1", "buyer_1", 250000, "NGN")

        tracker = PaymentTracker.objects.get(checkout_id="chk_1")
        assert tracker.status == PaymentTracker.STATUS_SUCCEEDED
        assert tracker.payment_reference == result.reference
        assert tracker.amount_minor == 250000
        assert not result.replayed

    def test_second_call_replays_without_charging(self):
        first = self.gateway.charge_once("chk_1", "buyer_1", 250000, "NGN")
        calls_after_first = len(self.provider.calls)

        second = self.gateway.charge_once("chk_1", "buyer_1", 250000, "NGN")

        assert second.replayed
        assert second.reference == first.reference
        assert len(self.provider.calls) == calls_after_first

    def test_recorded_success_is_replayed(self):
        PaymentTrackerFactory(checkout_id="chk_9", payment_reference="pi_earlier", amount_minor=500)

        result = self.gateway.charge_once("chk_9", "buyer_1", 500, "NGN")

        assert result.reference == "pi_earlier"
        assert self.provider.calls == []

    def test_decline_is_recorded_and_not_retried_later(self):
        with pytest.raises(PaymentDeclinedError):
            self.gateway.charge_once("chk_1", "buyer_1", 100, "NGN", payment_method="pm_card_declined")

        tracker = PaymentTracker.objects.get(checkout_id="chk_1")
        assert tracker.status == PaymentTracker.STATUS_DECLINED
        assert tracker.failure_code == "card_declined"

        calls = len(self.provider.calls)
        with pytest.raises(PaymentDeclinedError):
            self.gateway.charge_once("chk_1", "buyer_1", 100, "NGN")
        assert len(self.provider.calls) == calls

    def test_transient_failure_is_not_recorded(self):
        self.provider.fail_next(*[PaymentTransientException("timeout")] * 3)

        with pytest.raises(PaymentTransientError):
            self.gateway.charge_once("chk_1", "buyer_1", 100, "NGN")

        assert not PaymentTracker.objects.filter(checkout_id="chk_1").exists()
        result = self.gateway.charge_once("chk_1", "buyer_1", 100, "NGN")
        assert result.status == PaymentStatus.SUCCEEDED

    def test_metadata_carries_checkout_and_buyer(self):
        self.gateway.charge_once("chk_1", "buyer_1", 100, "NGN", metadata={"sellers": "s1,s2"})

        intent = next(iter(self.provider.charges.values()))
        assert intent.metadata == {"sellers": "s1,s2", "checkout_id": "chk_1", "buyer_id": "buyer_1"}

    def test_recorded_payment(self):
        assert self.gateway.recorded_payment("chk_1") is None

        PaymentTrackerFactory(checkout_id="chk_1", payment_reference="pi_earlier", amount_minor=500)

        recorded = self.gateway.recorded_payment("chk_1")
        assert recorded.reference == "pi_earlier"
        assert recorded.amount_charged == 500
        assert recorded.replayed

    def test_recorded_payment_of_another_buyer_is_refused(self):
        PaymentTrackerFactory(checkout_id="chk_1", buyer_id="buyer_A")

        with pytest.raises(CheckoutConflictError):
            self.gateway.recorded_payment("chk_1", buyer_id="buyer_C")

    def test_checkout_id_of_another_buyer_is_not_replayed(self):
        self.gateway.charge_once("chk_1", "buyer_A", 250000, "NGN")
        calls = len(self.provider.calls)

        with pytest.raises(CheckoutConflictError) as exc_info:
            self.gateway.charge_once("chk_1", "buyer_C", 250000, "NGN")

        assert exc_info.value.code == "checkout_id_conflict"
        assert len(self.provider.calls) == calls

    @pytest.mark.parametrize("amount,currency", [(1250000, "NGN"), (250000, "GBP")])
    def test_different_amount_or_currency_is_not_replayed(self, amount, currency):
        self.gateway.charge_once("chk_1", "buyer_A", 250000, "NGN")
        calls = len(self.provider.calls)

        with pytest.raises(CheckoutConflictError) as exc_info:
            self.gateway.charge_once("chk_1", "buyer_A", amount, currency)

        assert exc_info.value.details["recorded_amount"] == 250000
        assert len(self.provider.calls) == calls
        assert PaymentTracker.objects.get(checkout_id="chk_1").amount_minor == 250000

    def test_currency_case_does_not_break_replay(self):
        first = self.gateway.charge_once("chk_1", "buyer_A", 250000, "ngn")

        second = self.gateway.charge_once("chk_1", "buyer_A", 250000, "NGN")

        assert second.replayed
        assert second.reference == first.reference
