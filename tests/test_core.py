"""
test_core.py - Unit tests for core data structures

Tests:
- Transaction: creation, validation, party normalisation, shares, immutability
- Payment: creation, validation, single/grouped accessors, rendering
- allocate(): even splits and remainder placement
- transaction() / multi_party_transaction() helpers
"""

import dataclasses
from decimal import Decimal

import pytest

from debtledger import (
    Transaction, Payment, MoneyLike,
    allocate, sum_amounts, transaction, multi_party_transaction,
    InvalidTransaction, NonPositiveAmount, EmptyDebtorSet, EmptyCreditorSet,
    SelfSettlement, LedgerError,
)

from tests.builders import usd, gbp


class TestTransaction:
    """Tests for Transaction dataclass."""

    def test_create_valid_transaction(self):
        tx = Transaction(("alice",), ("bob",), usd("10"))
        assert tx.debtors == ("alice",)
        assert tx.creditors == ("bob",)
        assert tx.amount == usd("10")
        assert tx.currency_code == "USD"

    def test_single_party_is_wrapped(self):
        tx = Transaction("alice", "bob", usd("10"))
        assert tx.debtors == ("alice",)
        assert tx.creditors == ("bob",)

    def test_non_string_party(self):
        tx = Transaction(1, 2, usd("10"))
        assert tx.debtors == (1,)
        assert tx.creditors == (2,)

    def test_list_order_is_kept(self):
        tx = Transaction(["carol", "alice", "bob"], ["dave"], usd("9"))
        assert tx.debtors == ("carol", "alice", "bob")

    def test_set_is_sorted(self):
        tx = Transaction({"carol", "alice", "bob"}, {"dave"}, usd("9"))
        assert tx.debtors == ("alice", "bob", "carol")

    def test_duplicates_dropped(self):
        tx = Transaction(["alice", "bob", "alice"], ["carol"], usd("10"))
        assert tx.debtors == ("alice", "bob")

    def test_zero_amount_raises(self):
        with pytest.raises(NonPositiveAmount, match="less than or equal to 0"):
            Transaction("alice", "bob", usd("0"))

    def test_negative_amount_raises(self):
        with pytest.raises(NonPositiveAmount):
            Transaction("alice", "bob", usd("-1"))

    def test_empty_debtors_raises(self):
        with pytest.raises(EmptyDebtorSet):
            Transaction([], ["bob"], usd("1"))

    def test_empty_creditors_raises(self):
        with pytest.raises(EmptyCreditorSet):
            Transaction(["alice"], [], usd("1"))

    def test_self_settlement_raises(self):
        with pytest.raises(SelfSettlement):
            Transaction("alice", "alice", usd("1"))

    def test_self_settlement_after_dedup_raises(self):
        with pytest.raises(SelfSettlement):
            Transaction(["alice", "alice"], ["alice"], usd("1"))

    def test_payer_in_shared_bill_allowed(self):
        # Alice paid for a dinner shared by all three
        tx = Transaction(["alice", "bob", "carol"], ["alice"], usd("30"))
        assert "alice" in tx.debtors and "alice" in tx.creditors

    def test_errors_share_base_class(self):
        for error in (NonPositiveAmount, EmptyDebtorSet, EmptyCreditorSet, SelfSettlement):
            assert issubclass(error, InvalidTransaction)
            assert issubclass(error, LedgerError)

    def test_float_amount_rejected(self):
        with pytest.raises(TypeError):
            Transaction("alice", "bob", 10.0)

    def test_transaction_is_frozen(self):
        tx = Transaction("alice", "bob", usd("10"))
        with pytest.raises(dataclasses.FrozenInstanceError):
            tx.amount = usd("20")

    def test_debits_and_credits_one_to_one(self):
        tx = Transaction("alice", "bob", usd("10"))
        assert tx.debits() == [("alice", usd("10"))]
        assert tx.credits() == [("bob", usd("10"))]

    def test_debits_split_with_remainder_on_first(self):
        tx = Transaction(["a", "b", "c"], ["d"], usd("10"))
        assert tx.debits() == [("a", usd("3.34")), ("b", usd("3.33")), ("c", usd("3.33"))]
        assert tx.credits() == [("d", usd("10"))]

    def test_credits_split_with_remainder_on_first(self):
        tx = Transaction(["a"], ["b", "c", "d"], usd("10"))
        assert tx.credits() == [("b", usd("3.34")), ("c", usd("3.33")), ("d", usd("3.33"))]

    def test_str_one_to_one(self):
        assert str(Transaction("Alice", "Bob", usd("20"))) == "Alice owes Bob 20.00 USD"

    def test_str_multi_party(self):
        tx = Transaction(["Alice", "Bob"], ["Carol"], usd("20"))
        assert str(tx) == "Alice, Bob owe Carol 20.00 USD"


class TestPayment:
    """Tests for Payment dataclass."""

    def test_single_payment_accessors(self):
        p = Payment(("alice",), ("bob",), usd("5"))
        assert p.payer == "alice"
        assert p.payee == "bob"
        assert p.parties == ("alice", "bob")
        assert p.currency_code == "USD"

    def test_grouped_payer_accessor_raises(self):
        p = Payment(("alice", "bob"), ("carol",), usd("10"))
        with pytest.raises(ValueError, match="2 payers"):
            p.payer
        assert p.payee == "carol"

    def test_grouped_payee_accessor_raises(self):
        p = Payment(("alice",), ("bob", "carol"), usd("10"))
        with pytest.raises(ValueError, match="2 payees"):
            p.payee

    def test_non_positive_amount_raises(self):
        with pytest.raises(ValueError, match="must be positive"):
            Payment(("alice",), ("bob",), usd("0"))

    def test_self_payment_raises(self):
        with pytest.raises(ValueError, match="cannot pay itself"):
            Payment(("alice", "bob"), ("bob",), usd("1"))

    def test_empty_side_raises(self):
        with pytest.raises(ValueError):
            Payment((), ("bob",), usd("1"))

    def test_str(self):
        assert str(Payment("Alice", "Charlie", usd("20"))) == "Alice owes Charlie 20.00 USD"

    def test_str_grouped(self):
        p = Payment(("Bob",), ("Alice", "Charlie"), usd("30"))
        assert str(p) == "Bob owes Alice, Charlie 30.00 USD"

    def test_grouped_shares(self):
        p = Payment(("x", "y", "z"), ("w",), usd("10"))
        assert p.debits() == [("x", usd("3.34")), ("y", usd("3.33")), ("z", usd("3.33"))]
        assert p.credits() == [("w", usd("10"))]

    def test_payment_is_frozen(self):
        p = Payment("alice", "bob", usd("5"))
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.amount = usd("6")


class TestAllocate:
    """Tests for allocate()."""

    def test_single_party_gets_everything(self):
        assert allocate(usd("7.77"), ("a",)) == [("a", usd("7.77"))]

    def test_even_split(self):
        assert allocate(usd("9"), ("a", "b", "c")) == [
            ("a", usd("3")), ("b", usd("3")), ("c", usd("3")),
        ]

    def test_remainder_goes_to_first_parties(self):
        shares = allocate(usd("0.05"), ("a", "b", "c"))
        assert shares == [("a", usd("0.02")), ("b", usd("0.02")), ("c", usd("0.01"))]

    def test_shares_sum_exactly(self):
        shares = allocate(usd("100"), tuple("abcdefg"))
        assert sum_amounts(s for _, s in shares) == usd("100")

    def test_no_parties_raises(self):
        with pytest.raises(ValueError):
            allocate(usd("1"), ())


class TestSumAmounts:
    """Tests for sum_amounts()."""

    def test_empty_is_none(self):
        assert sum_amounts([]) is None

    def test_sum(self):
        assert sum_amounts([usd("1.10"), usd("2.20"), usd("-0.30")]) == usd("3.00")


class TestHelpers:
    """Tests for transaction() and multi_party_transaction()."""

    def test_transaction_from_tuple(self):
        tx = transaction("Alice", "Bob", (20, "USD"))
        assert tx == Transaction(("Alice",), ("Bob",), usd("20"))

    def test_transaction_from_money(self):
        tx = transaction("Alice", "Bob", gbp("1.50"))
        assert tx.currency_code == "GBP"

    def test_transaction_from_string_amount(self):
        tx = transaction("Alice", "Bob", ("12.34", "EUR"))
        assert tx.amount.amount == Decimal("12.34")

    def test_transaction_keeps_tuple_party(self):
        tx = transaction(("team", 1), "Bob", (5, "USD"))
        assert tx.debtors == (("team", 1),)

    def test_transaction_rejects_negative(self):
        with pytest.raises(NonPositiveAmount):
            transaction("Alice", "Bob", (-1, "USD"))

    def test_transaction_rejects_bad_amount(self):
        with pytest.raises(TypeError):
            transaction("Alice", "Bob", 20)

    def test_multi_party_transaction(self):
        tx = multi_party_transaction(["A", "B", "C"], ["D"], (10, "USD"))
        assert tx.debtors == ("A", "B", "C")
        assert tx.creditors == ("D",)

    def test_money_satisfies_protocol(self):
        assert isinstance(usd("1"), MoneyLike)
        assert not isinstance(Decimal("1"), MoneyLike)
