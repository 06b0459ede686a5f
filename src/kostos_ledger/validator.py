"""Diagnostic checks that payments and splits add up to the expense total.

The validator never corrects data. It reports the first (or every) sum that
is off by more than the tolerance, with enough detail for the caller to
render "$X left" / "$X over" hints.
"""

from collections.abc import Sequence
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, computed_field

from .exceptions import InputShapeError
from .models import TOLERANCE, Expense, Payment, Split, SplitType
from .splitter import to_decimal


class MismatchKind(str, Enum):
    """Which sum failed to match."""

    PAYMENTS = "payments"
    SPLITS = "splits"
    AMOUNTS = "amounts"
    SHARES = "shares"


class ValidationOk(BaseModel):
    """Everything adds up."""

    status: Literal["ok"] = "ok"


class SumMismatch(BaseModel):
    """A sum that does not match what it should."""

    status: Literal["mismatch"] = "mismatch"
    kind: MismatchKind
    expected: Decimal
    actual: Decimal

    @computed_field  # type: ignore[prop-decorator]
    @property
    def delta(self) -> Decimal:
        """Positive when money is still unallocated, negative when over-allocated."""
        return self.expected - self.actual

    def describe(self, symbol: str = "$") -> str:
        """Render a short hint such as '$1.50 left' or '$0.25 over'."""
        if self.kind is MismatchKind.SHARES:
            return f"Shares must not be negative (got {self.actual})"
        direction = "left" if self.delta > 0 else "over"
        return f"{symbol}{abs(self.delta):,.2f} {direction}"


ValidationResult = ValidationOk | SumMismatch


def _check_total(
    kind: MismatchKind,
    expected: Decimal,
    values: list[Decimal],
    tolerance: Decimal,
) -> SumMismatch | None:
    actual = sum(values, Decimal("0"))
    if abs(actual - expected) > tolerance:
        return SumMismatch(kind=kind, expected=expected, actual=actual)
    return None


def find_mismatches(
    expense_amount: Decimal | int | float | str,
    payments: Sequence[Payment],
    splits: Sequence[Split],
    split_type: SplitType | str | None = None,
    tolerance: Decimal = TOLERANCE,
) -> list[SumMismatch]:
    """
    Run every check and collect all failures.

    Checks, in order:
    1. Payments sum to the expense amount
    2. Owed amounts sum to the expense amount
    3. For fixed-amount splits, entered amounts sum to the expense amount
    4. For share splits, no weight is negative (all-zero weights are fine,
       the calculator falls back to an even split)

    Args:
        expense_amount: The expense total
        payments: Who paid what
        splits: Who owes what
        split_type: Policy used to compute the splits, enables checks 3 and 4
        tolerance: Largest difference still treated as matching

    Returns:
        List of mismatches, empty if everything adds up
    """
    expected = to_decimal(expense_amount)
    try:
        policy = SplitType.parse(split_type) if split_type is not None else None
    except ValueError as e:
        raise InputShapeError(f"Unknown split type: {split_type!r}") from e
    mismatches = []

    payment_mismatch = _check_total(
        MismatchKind.PAYMENTS,
        expected,
        [payment.amount for payment in payments],
        tolerance,
    )
    if payment_mismatch:
        mismatches.append(payment_mismatch)

    split_mismatch = _check_total(
        MismatchKind.SPLITS,
        expected,
        [split.owed_amount for split in splits],
        tolerance,
    )
    if split_mismatch:
        mismatches.append(split_mismatch)

    if policy is SplitType.AMOUNT:
        amount_mismatch = _check_total(
            MismatchKind.AMOUNTS,
            expected,
            [split.amount or Decimal("0") for split in splits],
            tolerance,
        )
        if amount_mismatch:
            mismatches.append(amount_mismatch)

    if policy is SplitType.SHARES:
        for split in splits:
            weight = split.weight
            if weight is not None and weight < 0:
                mismatches.append(
                    SumMismatch(
                        kind=MismatchKind.SHARES,
                        expected=Decimal("0"),
                        actual=weight,
                    )
                )
                break

    return mismatches


def validate(
    expense_amount: Decimal | int | float | str,
    payments: Sequence[Payment],
    splits: Sequence[Split],
    split_type: SplitType | str | None = None,
    tolerance: Decimal = TOLERANCE,
) -> ValidationResult:
    """Return ValidationOk, or the first SumMismatch found by find_mismatches."""
    mismatches = find_mismatches(
        expense_amount, payments, splits, split_type=split_type, tolerance=tolerance
    )
    if mismatches:
        return mismatches[0]
    return ValidationOk()


def expense_mismatches(
    expense: Expense, tolerance: Decimal = TOLERANCE
) -> list[SumMismatch]:
    """Every mismatch in a stored expense record, checked against its own policy."""
    return find_mismatches(
        expense.amount,
        expense.payments,
        expense.splits,
        split_type=expense.split_type,
        tolerance=tolerance,
    )
