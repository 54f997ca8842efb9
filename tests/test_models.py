import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from errors import InsufficientFunds, InsufficientHeld
from models import (
    Chargeback,
    ClientAccount,
    Deposit,
    Dispute,
    MAX_AMOUNT,
    ProcessingStats,
    TransactionType,
    Withdrawal,
    to_amount,
)


class TestTransaction:
    def test_create_deposit(self):
        transaction = Deposit(client_id=1, transaction_id=1, amount=Decimal("100.0"))
        assert transaction.transaction_type == TransactionType.DEPOSIT
        assert transaction.client_id == 1
        assert transaction.transaction_id == 1
        assert transaction.amount == Decimal("100.0")

    def test_dispute_has_no_amount(self):
        transaction = Dispute(client_id=1, transaction_id=1)
        assert transaction.transaction_type == TransactionType.DISPUTE
        assert not hasattr(transaction, "amount")

    def test_transactions_are_immutable(self):
        transaction = Withdrawal(client_id=1, transaction_id=2, amount=Decimal("5"))
        with pytest.raises(AttributeError):
            transaction.amount = Decimal("50")

    def test_kinds_with_same_ids_are_not_equal(self):
        assert Dispute(client_id=1, transaction_id=1) != Chargeback(client_id=1, transaction_id=1)

    def test_repr(self):
        assert repr(Dispute(client_id=3, transaction_id=7)) == "Dispute(client=3, tx=7)"
        assert repr(Deposit(3, 7, Decimal("1.5000"))) == "Deposit(client=3, tx=7, amount=1.5000)"


class TestToAmount:
    def test_quantizes_to_four_places(self):
        assert str(to_amount("1.5")) == "1.5000"
        assert str(to_amount(" 2 ")) == "2.0000"

    def test_rounds_half_even(self):
        assert to_amount("0.00005") == Decimal("0.0000")
        assert to_amount("0.00015") == Decimal("0.0002")

    def test_zero_accepted(self):
        assert to_amount("0") == Decimal("0")

    def test_upper_bound(self):
        assert to_amount("999999999999999.9999") == MAX_AMOUNT

    @pytest.mark.parametrize("value", ["-1", "abc", "NaN", "Infinity", "", "1e30", "1000000000000000"])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            to_amount(value)


class TestClientAccount:
    def test_default_values(self):
        account = ClientAccount(client_id=1)
        assert account.available == Decimal("0")
        assert account.held == Decimal("0")
        assert account.total == Decimal("0")
        assert account.locked is False

    def test_total_property(self):
        account = ClientAccount(
            client_id=1,
            available=Decimal("100"),
            held=Decimal("50"),
        )
        assert account.total == Decimal("150")

    def test_deposit(self):
        account = ClientAccount(client_id=1)
        account.deposit(Decimal("80"))
        assert account.available == Decimal("80")
        assert account.total == Decimal("80")

    def test_withdrawal(self):
        account = ClientAccount(client_id=1, available=Decimal("100"), held=Decimal("20"))
        account.withdrawal(Decimal("80"))
        assert account.available == Decimal("20")
        assert account.total == Decimal("40")

    def test_withdrawal_insufficient_funds_leaves_balances(self):
        account = ClientAccount(client_id=1, available=Decimal("20"), held=Decimal("20"))
        with pytest.raises(InsufficientFunds) as excinfo:
            account.withdrawal(Decimal("30"), transaction_id=9)
        assert excinfo.value.client_id == 1
        assert excinfo.value.transaction_id == 9
        assert account.available == Decimal("20")
        assert account.held == Decimal("20")

    def test_dispute_moves_available_to_held(self):
        account = ClientAccount(client_id=1, available=Decimal("100"), held=Decimal("20"))
        account.dispute(Decimal("20"))
        assert account.available == Decimal("80")
        assert account.held == Decimal("40")
        assert account.total == Decimal("120")

    def test_dispute_needs_available_funds(self):
        account = ClientAccount(client_id=1, available=Decimal("10"))
        with pytest.raises(InsufficientFunds):
            account.dispute(Decimal("10.0001"))
        assert account.available == Decimal("10")
        assert account.held == Decimal("0")

    def test_resolve_moves_held_to_available(self):
        account = ClientAccount(client_id=1, available=Decimal("100"), held=Decimal("20"))
        account.resolve(Decimal("20"))
        assert account.held == Decimal("0")
        assert account.available == Decimal("120")

    def test_resolve_insufficient_held(self):
        account = ClientAccount(client_id=1, available=Decimal("100"), held=Decimal("5"))
        with pytest.raises(InsufficientHeld):
            account.resolve(Decimal("20"))
        assert account.available == Decimal("100")
        assert account.held == Decimal("5")

    def test_chargeback_removes_held_and_locks(self):
        account = ClientAccount(client_id=1, available=Decimal("100"), held=Decimal("20"))
        account.chargeback(Decimal("20"))
        assert account.held == Decimal("0")
        assert account.total == Decimal("100")
        assert account.locked is True

    def test_chargeback_insufficient_held_does_not_lock(self):
        account = ClientAccount(client_id=1, held=Decimal("5"))
        with pytest.raises(InsufficientHeld):
            account.chargeback(Decimal("20"))
        assert account.held == Decimal("5")
        assert account.locked is False


class TestProcessingStats:
    def test_counters(self):
        stats = ProcessingStats()
        stats.record_success()
        stats.record_success()
        stats.record_failure()
        stats.record_malformed()
        assert stats.processed == 2
        assert stats.failed == 1
        assert stats.malformed == 1
        assert str(stats) == "Processed: 2, Failed: 1, Malformed: 1"


class TestBalancePrecision:
    def test_large_balances_stay_exact(self):
        account = ClientAccount(client_id=1, available=Decimal("999999999999999999999999.9999"))
        account.deposit(Decimal("0.0001"))
        assert str(account.available) == "1000000000000000000000000.0000"
        assert account.total == Decimal("1E+24")

    def test_max_amounts_accumulate_without_rounding(self):
        account = ClientAccount(client_id=1)
        for _ in range(1000):
            account.deposit(MAX_AMOUNT)
        account.dispute(MAX_AMOUNT)
        assert account.available == MAX_AMOUNT * 999
        assert account.held == MAX_AMOUNT
        assert account.total == Decimal("999999999999999999.9000")
