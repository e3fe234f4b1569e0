"""Tests for the balance calculator."""

import itertools
from decimal import Decimal

import pytest

from fiado.ledger.balance import (
    ZERO_TOLERANCE,
    calculate_balance,
    can_delete,
    coerce_value,
    is_settled,
)
from fiado.models import TransactionType

from helpers import make_transaction


SALE = TransactionType.SALE
PAYMENT = TransactionType.PAYMENT


class TestCalculateBalance:
    """Tests for calculate_balance."""

    def test_empty_history_is_zero(self):
        """No transactions means nothing owed."""
        assert calculate_balance([]) == Decimal("0")
        assert calculate_balance(None) == Decimal("0")

    def test_single_sale(self):
        assert calculate_balance([make_transaction(100)]) == Decimal("100.00")

    def test_sale_fully_paid(self):
        transactions = [make_transaction(100), make_transaction(100, PAYMENT)]
        assert calculate_balance(transactions) == Decimal("0")

    def test_remainder_inside_tolerance_is_clamped(self):
        """Five cents left over counts as settled."""
        transactions = [make_transaction(100), make_transaction("99.95", PAYMENT)]
        assert calculate_balance(transactions) == Decimal("0")

    def test_remainder_outside_tolerance_is_kept(self):
        """Twenty cents is real money."""
        transactions = [make_transaction(100), make_transaction("99.80", PAYMENT)]
        assert calculate_balance(transactions) == Decimal("0.20")

    def test_remainder_at_tolerance_is_kept(self):
        """The band is open: exactly ten cents is not clamped."""
        transactions = [make_transaction(100), make_transaction("99.90", PAYMENT)]
        assert calculate_balance(transactions) == Decimal("0.10")

    def test_overpayment_gives_negative_balance(self):
        transactions = [make_transaction(50), make_transaction(80, PAYMENT)]
        assert calculate_balance(transactions) == Decimal("-30.00")

    def test_order_independent(self):
        """Every permutation of the history gives the same balance."""
        transactions = [
            make_transaction("10.10"),
            make_transaction("20.25", PAYMENT),
            make_transaction("33.33"),
            make_transaction("0.07", PAYMENT),
        ]
        expected = calculate_balance(transactions)
        for permutation in itertools.permutations(transactions):
            assert calculate_balance(list(permutation)) == expected

    def test_idempotent(self):
        transactions = [make_transaction("12.345"), make_transaction(2, PAYMENT)]
        assert calculate_balance(transactions) == calculate_balance(transactions)

    def test_rounds_half_up_to_cents(self):
        assert calculate_balance([make_transaction("10.005")]) == Decimal("10.01")

    def test_custom_tolerance(self):
        """A stricter band keeps a five-cent remainder."""
        transactions = [make_transaction(100), make_transaction("99.95", PAYMENT)]
        assert calculate_balance(transactions, Decimal("0.01")) == Decimal("0.05")

    def test_accepts_raw_documents(self):
        """Stored dicts are read the same way as models."""
        documents = [
            {"value": 100, "type": "SALE"},
            {"value": "40.50", "type": "PAYMENT"},
        ]
        assert calculate_balance(documents) == Decimal("59.50")

    def test_unreadable_values_count_as_zero(self):
        documents = [
            {"value": 100, "type": "SALE"},
            {"value": "abc", "type": "SALE"},
            {"value": None, "type": "PAYMENT"},
            {"type": "SALE"},
        ]
        assert calculate_balance(documents) == Decimal("100.00")

    def test_unknown_type_counts_as_payment(self):
        documents = [
            {"value": 100, "type": "SALE"},
            {"value": 30, "type": "REFUND"},
        ]
        assert calculate_balance(documents) == Decimal("70.00")

    def test_out_of_range_values_count_as_zero(self):
        """Amounts beyond the ledger's range never reach the rounding step."""
        documents = [
            {"value": "1e30", "type": "SALE"},
            {"value": "1e999999999", "type": "PAYMENT"},
            {"value": 40, "type": "SALE"},
        ]
        assert calculate_balance(documents) == Decimal("40.00")

    def test_largest_amounts_still_round(self):
        documents = [{"value": "999999999999.995", "type": "SALE"}] * 3
        assert calculate_balance(documents) == Decimal("2999999999999.99")


class TestCoerceValue:
    """Tests for reading raw amounts."""

    @pytest.mark.parametrize("raw, expected", [
        (10, Decimal("10")),
        ("12.50", Decimal("12.50")),
        (" 3 ", Decimal("3")),
        (Decimal("1.5"), Decimal("1.5")),
        ("", Decimal("0")),
        ("R$ 10", Decimal("0")),
        (None, Decimal("0")),
        (True, Decimal("0")),
        (float("nan"), Decimal("0")),
        (float("inf"), Decimal("0")),
        ([1, 2], Decimal("0")),
        ("1000000000000", Decimal("1000000000000")),
        ("1e30", Decimal("0")),
        ("-1e13", Decimal("0")),
        ("1e999999999", Decimal("0")),
    ])
    def test_coerce(self, raw, expected):
        assert coerce_value(raw) == expected


class TestDeleteRule:
    """Tests for is_settled and can_delete."""

    def test_tolerance_constant(self):
        assert ZERO_TOLERANCE == Decimal("0.10")

    def test_settled_band(self):
        assert is_settled(Decimal("0.05"))
        assert is_settled(Decimal("-0.09"))
        assert not is_settled(Decimal("0.10"))
        assert not is_settled(Decimal("-5"))

    def test_no_history_can_be_deleted(self):
        assert can_delete([])

    def test_five_cents_owed_can_be_deleted(self):
        transactions = [make_transaction(100), make_transaction("99.95", PAYMENT)]
        assert can_delete(transactions)

    def test_open_debt_cannot_be_deleted(self):
        assert not can_delete([make_transaction(100)])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
