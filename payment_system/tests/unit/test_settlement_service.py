import threading
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import OperationalError, connection

from infrastructure.payments import PaymentStatus
from marketplace.models import Order, OrderItem, Product
from marketplace.tests.factories import OrderFactory, ProductFactory, SellerWalletFactory, cart_line, partition_for
from payment_system.domain.exceptions import (
    CheckoutConflictError,
    ConcurrencyExhaustedError,
    FeePolicyViolationError,
    InsufficientStockError,
    SettlementIntegrityError,
    SettlementOutcomeUnknownError,
    ValidationError,
)
from payment_system.domain.services import FeePolicy, PaymentResult, SettlementService, SettlementState
from payment_system.models import LedgerEntry, SellerWallet
from utils.transaction_utils import OptimisticLockError

PAYMENT = PaymentResult(reference="pi_test_1", amount_charged=250000, currency="NGN", status=PaymentStatus.SUCCEEDED)


def balance(wallet_id):
    wallet = SellerWallet.objects.filter(seller_id=wallet_id).first()
    return wallet.available_balance if wallet else Decimal("0.00")


@pytest.mark.django_db
class TestSettlementService:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = SettlementService(
            fee_policy=FeePolicy(), platform_wallet_id="admin", currency="NGN", attempts=3, base_delay=0
        )
        self.p1 = ProductFactory(seller_id="S1", price=Decimal("2000.00"), stock_quantity=5, name="Lamp")
        self.p2 = ProductFactory(seller_id="S2", price=Decimal("500.00"), stock_quantity=5, name="Mug")
        self.partitions = [
            partition_for("S1", cart_line(self.p1)),
            partition_for("S2", cart_line(self.p2)),
        ]

    def settle(self, checkout_id="chk_A", partitions=None, **kwargs):
        return self.service.settle(
            checkout_id, "buyer_B", partitions or self.partitions, PAYMENT, shipping_details={"city": "Lagos"}, **kwargs
        )

    # Two sellers, one checkout

    def test_two_sellers_settle_into_two_orders(self):
        result = self.settle()

        assert result.state == SettlementState.SETTLED
        assert not result.already_settled
        assert result.order_ids == ["chk_A-S1", "chk_A-S2"]

        s1_order = Order.objects.get(id="chk_A-S1")
        assert s1_order.status == Order.STATUS_PENDING_APPROVAL
        assert s1_order.subtotal == Decimal("2000.00")
        assert s1_order.admin_amount == Decimal("290.00")
        assert s1_order.seller_amount == Decimal("1710.00")
        assert s1_order.payment_reference == "pi_test_1"
        assert s1_order.shipping_details == {"city": "Lagos"}

        s2_order = Order.objects.get(id="chk_A-S2")
        assert s2_order.admin_amount == Decimal("72.50")
        assert s2_order.seller_amount == Decimal("427.50")

    def test_wallets_are_credited(self):
        self.settle()

        assert balance("S1") == Decimal("1710.00")
        assert balance("S2") == Decimal("427.50")
        assert balance("admin") == Decimal("362.50")

    def test_stock_is_decremented(self):
        self.settle()

        self.p1.refresh_from_db()
        self.p2.refresh_from_db()
        assert self.p1.stock_quantity == 4
        assert self.p2.stock_quantity == 4
        assert self.p1.version == 1

    def test_ledger_entry_per_seller(self):
        self.settle()

        entries = LedgerEntry.objects.filter(checkout_id="chk_A").order_by("seller_id")
        assert [entry.seller_id for entry in entries] == ["S1", "S2"]
        assert entries[0].seller_amount == Decimal("1710.00")
        assert entries[0].admin_fees == Decimal("290.00")
        assert entries[0].product_ids == [str(self.p1.id)]

    def test_order_items_snapshot_cart_lines(self):
        self.settle()

        item = OrderItem.objects.get(order_id="chk_A-S1")
        assert item.product_name == "Lamp"
        assert item.quantity == 1
        assert item.total_price == Decimal("2000.00")

    def test_money_is_conserved(self):
        result = self.settle()

        credited = balance("S1") + balance("S2") + balance("admin")
        assert credited == result.totals.subtotal == Decimal("2500.00")

    def test_existing_wallet_balance_is_added_to(self):
        SellerWalletFactory(seller_id="S1", available_balance=Decimal("100.00"))

        self.settle()

        assert balance("S1") == Decimal("1810.00")

    def test_rounding_drift_goes_to_platform_wallet(self):
        result = self.settle(rounding_drift=Decimal("-1.00"))

        assert result.rounding_drift == Decimal("-1.00")
        assert balance("admin") == Decimal("361.50")
        assert balance("S1") == Decimal("1710.00")

    def test_same_product_in_several_lines_is_decremented_once_in_total(self):
        partitions = [partition_for("S1", cart_line(self.p1, 2), cart_line(self.p1, 3))]

        self.settle(partitions=partitions)

        self.p1.refresh_from_db()
        assert self.p1.stock_quantity == 0

    # Insufficient stock

    def test_insufficient_stock_aborts_without_writes(self):
        partitions = [
            partition_for("S1", cart_line(self.p1)),
            partition_for("S2", cart_line(self.p2, 6)),
        ]

        with pytest.raises(InsufficientStockError) as exc_info:
            self.settle(partitions=partitions)

        assert exc_info.value.product_id == str(self.p2.id)
        assert exc_info.value.requested == 6
        assert exc_info.value.available == 5
        assert not Order.objects.exists()
        assert not SellerWallet.objects.exists()
        assert not LedgerEntry.objects.exists()
        self.p1.refresh_from_db()
        assert self.p1.stock_quantity == 5

    def test_vanished_product_counts_as_out_of_stock(self):
        partitions = [partition_for("S1", cart_line(self.p1))]
        Product.objects.filter(pk=self.p1.pk).delete()

        with pytest.raises(InsufficientStockError) as exc_info:
            self.settle(partitions=partitions)

        assert exc_info.value.available == 0

    def test_stock_lost_between_validation_and_commit(self):
        original_check = SettlementService._check_stock
        calls = {"count": 0}

        def racing_check(requested):
            calls["count"] += 1
            if calls["count"] == 2:
                # Another checkout takes the last units after validation
                Product.objects.filter(pk=self.p2.pk).update(stock_quantity=0)
            return original_check(requested)

        with patch.object(SettlementService, "_check_stock", side_effect=racing_check):
            with pytest.raises(InsufficientStockError):
                self.settle()

        assert not Order.objects.exists()
        self.p1.refresh_from_db()
        assert self.p1.stock_quantity == 5

    # Re-drive

    def test_redrive_returns_same_orders_without_side_effects(self):
        first = self.settle()

        second = self.settle()

        assert second.already_settled
        assert second.order_ids == first.order_ids
        assert Order.objects.count() == 2
        assert LedgerEntry.objects.count() == 2
        assert balance("S1") == Decimal("1710.00")
        assert balance("admin") == Decimal("362.50")
        self.p1.refresh_from_db()
        assert self.p1.stock_quantity == 4

    def test_redrive_succeeds_even_when_stock_is_now_zero(self):
        self.settle()
        Product.objects.update(stock_quantity=0)

        result = self.settle()

        assert result.already_settled

    def test_partially_visible_checkout_is_treated_as_settled(self):
        OrderFactory(checkout_id="chk_A", buyer_id="buyer_B", seller_id="S2")

        result = self.settle()

        assert result.already_settled
        assert result.order_ids == ["chk_A-S2"]

    def test_checkout_id_of_another_buyer_is_refused(self):
        self.settle()

        with pytest.raises(CheckoutConflictError):
            self.service.settle("chk_A", "buyer_C", [partition_for("S2", cart_line(self.p2, 2))], PAYMENT)

        assert set(Order.objects.values_list("buyer_id", flat=True)) == {"buyer_B"}
        assert Order.objects.count() == 2
        assert balance("S2") == Decimal("427.50")
        self.p2.refresh_from_db()
        assert self.p2.stock_quantity == 4

    def test_validate_refuses_checkout_id_of_another_buyer(self):
        OrderFactory(checkout_id="chk_A", buyer_id="buyer_A", seller_id="S1")

        with pytest.raises(CheckoutConflictError):
            self.service.validate("chk_A", "buyer_C", self.partitions)

    def test_order_id_taken_by_another_checkout_is_refused(self):
        # "chk_A" + seller "b-c" and "chk_A-b" + seller "c" both build "chk_A-b-c"
        self.settle(partitions=[partition_for("b-c", cart_line(self.p1))])

        with pytest.raises(CheckoutConflictError) as exc_info:
            self.settle(checkout_id="chk_A-b", partitions=[partition_for("c", cart_line(self.p2))])

        assert exc_info.value.details["order_id"] == "chk_A-b-c"
        assert Order.objects.get(id="chk_A-b-c").checkout_id == "chk_A"
        self.p2.refresh_from_db()
        assert self.p2.stock_quantity == 5

    # Concurrency and atomicity

    def test_conflicts_are_retried(self):
        with patch(
            "payment_system.domain.services.settlement_service.conditional_update",
            side_effect=[OptimisticLockError("Product", self.p1.pk, 0), None, None, None, None, None],
        ) as mock_update:
            result = self.settle()

        assert result.order_ids == ["chk_A-S1", "chk_A-S2"]
        assert mock_update.call_count == 6

    def test_exhausted_conflicts_abort(self):
        with patch(
            "payment_system.domain.services.settlement_service.conditional_update",
            side_effect=OptimisticLockError("Product", self.p1.pk, 0),
        ) as mock_update:
            with pytest.raises(ConcurrencyExhaustedError):
                self.settle()

        assert mock_update.call_count == 3
        assert not Order.objects.exists()
        assert not LedgerEntry.objects.exists()

    def test_failure_mid_commit_rolls_back_every_seller(self):
        original_create = SettlementService._create_order
        calls = {"count": 0}

        def failing_create(service, *args, **kwargs):
            calls["count"] += 1
            if calls["count"] == 2:
                raise RuntimeError("disk full")
            return original_create(service, *args, **kwargs)

        with patch.object(SettlementService, "_create_order", autospec=True, side_effect=failing_create):
            with pytest.raises(RuntimeError):
                self.settle()

        assert not Order.objects.exists()
        assert not LedgerEntry.objects.exists()
        assert balance("S1") == Decimal("0.00")
        self.p1.refresh_from_db()
        self.p2.refresh_from_db()
        assert (self.p1.stock_quantity, self.p2.stock_quantity) == (5, 5)

    def test_constraint_violation_is_not_retried(self):
        original_create = SettlementService._create_order
        calls = {"count": 0}

        def counting_create(service, *args, **kwargs):
            calls["count"] += 1
            return original_create(service, *args, **kwargs)

        # Net quantity 1 passes the stock check; the -1 line breaks the order item CHECK constraint
        partitions = [partition_for("S1", cart_line(self.p1, 2), cart_line(self.p1, -1))]

        with patch.object(SettlementService, "_create_order", autospec=True, side_effect=counting_create):
            with pytest.raises(SettlementIntegrityError) as exc_info:
                self.settle(partitions=partitions)

        assert exc_info.value.code == "database_error"
        assert calls["count"] == 1
        assert not Order.objects.exists()
        self.p1.refresh_from_db()
        assert self.p1.stock_quantity == 5

    def test_database_failure_reports_unknown_outcome(self):
        with patch.object(
            SettlementService, "_create_order", side_effect=OperationalError("server closed the connection")
        ):
            with pytest.raises(SettlementOutcomeUnknownError):
                self.settle()

    # Validation

    def test_validate_returns_fees_per_seller(self):
        fees = self.service.validate("chk_A", "buyer_B", self.partitions)

        assert fees["S1"].admin_amount == Decimal("290.00")
        assert fees["S2"].seller_amount == Decimal("427.50")
        assert not Order.objects.exists()

    def test_fees_exceeding_subtotal_are_rejected(self):
        class GreedyPolicy(FeePolicy):
            def compute_partition_fees(self, lines):
                fees = super().compute_partition_fees(lines)
                return fees.__class__(fees.subtotal, fees.subtotal, Decimal("1.00"), Decimal("0.00"))

        service = SettlementService(fee_policy=GreedyPolicy(), attempts=1, base_delay=0)

        with pytest.raises(FeePolicyViolationError):
            service.settle("chk_A", "buyer_B", self.partitions, PAYMENT)
        assert not Order.objects.exists()

    def test_requires_checkout_id(self):
        with pytest.raises(ValidationError):
            self.service.settle("", "buyer_B", self.partitions, PAYMENT)

    def test_requires_partitions(self):
        with pytest.raises(ValidationError):
            self.service.settle("chk_A", "buyer_B", [], PAYMENT)


@pytest.mark.django_db(transaction=True)
class TestSettlementRace:
    """A rival checkout commits on its own connection between this unit's stock read and its write."""

    @pytest.fixture(autouse=True)
    def setup(self, transactional_db):
        self.service = SettlementService(
            fee_policy=FeePolicy(), platform_wallet_id="admin", currency="NGN", attempts=3, base_delay=0
        )
        self.lamp = ProductFactory(seller_id="S1", price=Decimal("2000.00"), stock_quantity=1, name="Lamp")

    @staticmethod
    def set_read_uncommitted(enabled):
        # Shared-cache SQLite: reads take no table locks, so the rival can commit mid-transaction
        if connection.vendor == "sqlite":
            with connection.cursor() as cursor:
                cursor.execute(f"PRAGMA read_uncommitted = {int(enabled)}")

    def run_rival(self):
        errors = []

        def rival():
            try:
                self.service.settle("chk_rival", "buyer_R", [partition_for("S1", cart_line(self.lamp))], PAYMENT)
            except Exception as e:  # re-raised in the test thread
                errors.append(e)
            finally:
                connection.close()

        thread = threading.Thread(target=rival)
        thread.start()
        thread.join(timeout=10)
        if errors:
            raise errors[0]

    def test_last_unit_goes_to_exactly_one_checkout(self):
        product_table = Product._meta.db_table
        raced = {"done": False}

        def race_before_stock_write(execute, sql, params, many, context):
            if (
                not raced["done"]
                and connection.in_atomic_block
                and sql.lstrip().upper().startswith("UPDATE")
                and product_table in sql
            ):
                raced["done"] = True
                self.run_rival()
            return execute(sql, params, many, context)

        self.set_read_uncommitted(True)
        try:
            with connection.execute_wrapper(race_before_stock_write):
                with pytest.raises(InsufficientStockError):
                    self.service.settle("chk_A", "buyer_B", [partition_for("S1", cart_line(self.lamp))], PAYMENT)
        finally:
            self.set_read_uncommitted(False)

        assert raced["done"]
        self.lamp.refresh_from_db()
        assert self.lamp.stock_quantity == 0
        assert self.lamp.version == 1
        assert list(Order.objects.values_list("id", flat=True)) == ["chk_rival-S1"]
        assert balance("S1") == Decimal("1710.00")
