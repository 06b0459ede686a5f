"""Tests for the expense form autofill helpers."""

from decimal import Decimal

import pytest

from kostos_ledger.autofill import (
    autofill_amounts,
    fill_remaining_payment,
    rescale_payments,
)
from kostos_ledger.exceptions import InputShapeError
from kostos_ledger.models import Payment


def pay(member_id: str, amount: str) -> Payment:
    """Create a payment."""
    return Payment(member_id=member_id, amount=Decimal(amount))


class TestFillRemainingPayment:
    """The 'fill remaining' button next to each payer."""

    def test_fills_gap(self):
        """The chosen payer covers what the others did not."""
        payments = [pay("a", "30.00"), pay("b", "0")]

        filled = fill_remaining_payment(Decimal("75.00"), payments, 1)

        assert [p.amount for p in filled] == [Decimal("30.00"), Decimal("45.00")]
        assert payments[1].amount == Decimal("0")

    def test_replaces_existing_value(self):
        """Any current value of the chosen payer is overwritten."""
        filled = fill_remaining_payment(
            Decimal("20.00"), [pay("a", "5.00"), pay("b", "99.00")], 1
        )

        assert filled[1].amount == Decimal("15.00")

    def test_never_negative(self):
        """Over-paid totals leave the chosen payer at zero."""
        filled = fill_remaining_payment(
            Decimal("10.00"), [pay("a", "12.00"), pay("b", "1.00")], 1
        )

        assert filled[1].amount == Decimal("0")

    def test_bad_index(self):
        """The index must point at a payment."""
        with pytest.raises(InputShapeError, match="out of range"):
            fill_remaining_payment(Decimal("10.00"), [pay("a", "1.00")], 3)


class TestRescalePayments:
    """Proportional payer adjustment after the total changes."""

    def test_single_payer_takes_total(self):
        """One payer simply pays the new total."""
        scaled = rescale_payments(Decimal("64.20"), [pay("a", "50.00")])

        assert scaled == [pay("a", "64.20")]

    def test_proportional(self):
        """Payers keep their proportions."""
        scaled = rescale_payments(
            Decimal("200.00"), [pay("a", "25.00"), pay("b", "75.00")]
        )

        assert [p.amount for p in scaled] == [Decimal("50.00"), Decimal("150.00")]

    def test_last_payer_absorbs_residue(self):
        """Rounding leftovers land on the last payer so the total is exact."""
        payments = [pay("a", "1.00"), pay("b", "1.00"), pay("c", "1.00")]

        scaled = rescale_payments(Decimal("10.00"), payments)

        assert [p.amount for p in scaled] == [
            Decimal("3.33"),
            Decimal("3.33"),
            Decimal("3.34"),
        ]
        assert sum(p.amount for p in scaled) == Decimal("10.00")

    def test_zero_payments(self):
        """Several all-zero payments cannot be scaled."""
        with pytest.raises(InputShapeError, match="sum to zero"):
            rescale_payments(Decimal("10.00"), [pay("a", "0"), pay("b", "0")])

    def test_no_payments(self):
        """At least one payment is needed."""
        with pytest.raises(InputShapeError, match="At least one payment"):
            rescale_payments(Decimal("10.00"), [])


class TestAutofillAmounts:
    """Suggested amounts for fixed-amount splits."""

    def test_nothing_entered_spreads_evenly(self):
        """With no entries the total is shared evenly."""
        amounts = autofill_amounts(Decimal("10.00"), ["a", "b", "c"], {})

        assert amounts == {
            "a": Decimal("3.33"),
            "b": Decimal("3.33"),
            "c": Decimal("3.34"),
        }

    def test_everything_entered_spreads_evenly(self):
        """With every field filled, autofill starts over evenly."""
        amounts = autofill_amounts(
            Decimal("30.00"), ["a", "b"], {"a": Decimal("1.00"), "b": Decimal("2.00")}
        )

        assert amounts == {"a": Decimal("15.00"), "b": Decimal("15.00")}

    def test_fills_only_empty(self):
        """Entered amounts stay; the remainder is shared by the rest."""
        amounts = autofill_amounts(
            Decimal("50.00"), ["a", "b", "c"], {"a": Decimal("20.00"), "b": None}
        )

        assert amounts == {
            "a": Decimal("20.00"),
            "b": Decimal("15.00"),
            "c": Decimal("15.00"),
        }
        assert sum(amounts.values()) == Decimal("50.00")

    def test_zero_counts_as_empty(self):
        """A zero entry is treated like an empty field."""
        amounts = autofill_amounts(
            Decimal("10.00"), ["a", "b"], {"a": Decimal("4.00"), "b": Decimal("0")}
        )

        assert amounts["b"] == Decimal("6.00")

    def test_over_allocated_leaves_zero(self):
        """When entries already exceed the total, empty fields get nothing."""
        amounts = autofill_amounts(
            Decimal("10.00"), ["a", "b"], {"a": Decimal("12.00")}
        )

        assert amounts == {"a": Decimal("12.00"), "b": Decimal("0")}

    def test_no_participants(self):
        """Nothing to fill."""
        assert autofill_amounts(Decimal("10.00"), [], {}) == {}
