"""Tests for the payment validator."""

from decimal import Decimal

import pytest

from kostos_ledger.exceptions import InputShapeError
from kostos_ledger.models import Expense, Payment, Split, SplitType
from kostos_ledger.splitter import compute_splits
from kostos_ledger.validator import (
    MismatchKind,
    SumMismatch,
    ValidationOk,
    find_mismatches,
    validate,
    expense_mismatches,
)


def pay(member_id: str, amount: str) -> Payment:
    """Create a payment."""
    return Payment(member_id=member_id, amount=Decimal(amount))


def owe(member_id: str, owed: str, **kwargs) -> Split:
    """Create a split."""
    return Split(member_id=member_id, owed_amount=Decimal(owed), **kwargs)


class TestValidExpenses:
    """Expenses that add up."""

    def test_single_payer_even_split(self):
        """A straightforward expense validates."""
        result = validate(
            Decimal("30.00"),
            [pay("a", "30.00")],
            [owe("a", "10.00"), owe("b", "10.00"), owe("c", "10.00")],
        )

        assert isinstance(result, ValidationOk)
        assert result.status == "ok"

    def test_multiple_payers(self):
        """Payments from several members may share the total."""
        result = validate(
            Decimal("100.00"),
            [pay("a", "60.00"), pay("b", "40.00")],
            compute_splits(Decimal("100.00"), ["a", "b", "c"], SplitType.EVEN),
            split_type=SplitType.EVEN,
        )

        assert isinstance(result, ValidationOk)

    def test_within_tolerance(self):
        """A one-cent difference is still a match."""
        result = validate(
            Decimal("10.00"),
            [pay("a", "9.99")],
            [owe("a", "5.00"), owe("b", "5.01")],
        )

        assert isinstance(result, ValidationOk)

    def test_all_zero_shares_accepted(self):
        """All-zero shares are fine; the even fallback applies."""
        result = validate(
            Decimal("10.00"),
            [pay("a", "10.00")],
            [owe("a", "5.00", shares=Decimal("0")), owe("b", "5.00", shares=Decimal("0"))],
            split_type="shares",
        )

        assert isinstance(result, ValidationOk)


class TestMismatches:
    """Expenses that do not add up."""

    def test_payments_short(self):
        """Payments below the total are reported with expected and actual."""
        result = validate(
            Decimal("50.00"),
            [pay("a", "45.00")],
            [owe("a", "25.00"), owe("b", "25.00")],
        )

        assert isinstance(result, SumMismatch)
        assert result.kind is MismatchKind.PAYMENTS
        assert result.expected == Decimal("50.00")
        assert result.actual == Decimal("45.00")
        assert result.delta == Decimal("5.00")

    def test_splits_over(self):
        """Owed amounts above the total give a negative delta."""
        result = validate(
            Decimal("50.00"),
            [pay("a", "50.00")],
            [owe("a", "30.00"), owe("b", "30.00")],
        )

        assert isinstance(result, SumMismatch)
        assert result.kind is MismatchKind.SPLITS
        assert result.delta == Decimal("-10.00")
        assert result.describe() == "$10.00 over"

    def test_fixed_amounts_short(self):
        """Entered fixed amounts summing below the total are flagged."""
        splits = compute_splits(
            Decimal("80.00"),
            ["a", "b"],
            SplitType.AMOUNT,
            amounts={"a": Decimal("30.00"), "b": Decimal("40.00")},
        )

        mismatches = find_mismatches(
            Decimal("80.00"), [pay("a", "80.00")], splits, split_type=SplitType.AMOUNT
        )

        kinds = [m.kind for m in mismatches]
        assert kinds == [MismatchKind.SPLITS, MismatchKind.AMOUNTS]
        amounts = mismatches[1]
        assert amounts.expected == Decimal("80.00")
        assert amounts.actual == Decimal("70.00")
        assert amounts.delta == Decimal("10.00")
        assert amounts.describe("€") == "€10.00 left"

    def test_entered_amounts_checked_only_for_amount_policy(self):
        """Missing entered amounts do not matter for an even split."""
        mismatches = find_mismatches(
            Decimal("20.00"),
            [pay("a", "20.00")],
            [owe("a", "10.00"), owe("b", "10.00")],
            split_type=SplitType.EVEN,
        )

        assert mismatches == []

    def test_negative_share(self):
        """A negative share weight is reported."""
        result = validate(
            Decimal("10.00"),
            [pay("a", "10.00")],
            [owe("a", "20.00", shares=Decimal("2")), owe("b", "-10.00", shares=Decimal("-1"))],
            split_type=SplitType.SHARES,
        )

        assert isinstance(result, SumMismatch)
        assert result.kind is MismatchKind.SHARES
        assert result.actual == Decimal("-1")

    def test_first_mismatch_wins(self):
        """validate reports the payment check before the split check."""
        result = validate(Decimal("10.00"), [pay("a", "1.00")], [owe("a", "2.00")])

        assert isinstance(result, SumMismatch)
        assert result.kind is MismatchKind.PAYMENTS

    def test_tolerance_override(self):
        """A wider tolerance accepts larger differences."""
        result = validate(
            Decimal("10.00"),
            [pay("a", "9.95")],
            [owe("a", "10.00")],
            tolerance=Decimal("0.05"),
        )

        assert isinstance(result, ValidationOk)

    def test_does_not_modify_input(self):
        """The validator is purely diagnostic."""
        payments = [pay("a", "5.00")]
        splits = [owe("a", "5.00")]

        validate(Decimal("10.00"), payments, splits)

        assert payments[0].amount == Decimal("5.00")
        assert splits[0].owed_amount == Decimal("5.00")

    def test_unknown_split_type(self):
        """An unknown policy tag is malformed input."""
        with pytest.raises(InputShapeError):
            validate(Decimal("1.00"), [], [], split_type="itemized")


class TestExpenseMismatches:
    """Validating a stored expense record."""

    def test_expense_record(self):
        """The expense's own policy decides which checks run."""
        expense = Expense(
            id="e1",
            amount=Decimal("40.00"),
            split_type=SplitType.AMOUNT,
            payments=[pay("a", "40.00")],
            splits=[
                owe("a", "10.00", amount=Decimal("10.00")),
                owe("b", "30.00", amount=Decimal("30.00")),
            ],
        )

        assert expense_mismatches(expense) == []

    def test_reports_every_failure(self):
        """All failing sums are returned, payments first."""
        expense = Expense(
            id="e2",
            amount=Decimal("40.00"),
            split_type=SplitType.AMOUNT,
            payments=[pay("a", "35.00")],
            splits=[
                owe("a", "10.00", amount=Decimal("10.00")),
                owe("b", "20.00", amount=Decimal("20.00")),
            ],
        )

        mismatches = expense_mismatches(expense)

        assert [m.kind for m in mismatches] == [
            MismatchKind.PAYMENTS,
            MismatchKind.SPLITS,
            MismatchKind.AMOUNTS,
        ]
        assert mismatches[1].delta == Decimal("10.00")
