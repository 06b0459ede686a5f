"""Helpers that fill in payment and split amounts for a half-completed expense form.

These back the "fill remaining" buttons of the expense editor. They are pure:
each returns new objects and leaves its arguments untouched.
"""

import logging
from collections.abc import Mapping, Sequence
from decimal import Decimal

from .exceptions import InputShapeError
from .models import Payment
from .splitter import round_to_cent, split_evenly, to_decimal

logger = logging.getLogger(__name__)


def fill_remaining_payment(
    expense_amount: Decimal | int | float | str,
    payments: Sequence[Payment],
    index: int,
) -> list[Payment]:
    """
    Set one payer's amount to whatever the other payers have not covered.

    The filled amount is never negative.

    Raises:
        InputShapeError: If index does not point at a payment
    """
    if not 0 <= index < len(payments):
        raise InputShapeError(
            f"Payment index {index} out of range for {len(payments)} payments"
        )

    total = to_decimal(expense_amount)
    others = sum(
        (p.amount for i, p in enumerate(payments) if i != index), Decimal("0")
    )
    remaining = max(Decimal("0"), round_to_cent(total - others))

    filled = [p.model_copy() for p in payments]
    filled[index] = filled[index].model_copy(update={"amount": remaining})
    return filled


def rescale_payments(
    expense_amount: Decimal | int | float | str,
    payments: Sequence[Payment],
) -> list[Payment]:
    """
    Scale payer amounts proportionally after the expense total changed.

    A single payer simply takes the new total. With several payers each one
    keeps their proportion, rounded to the cent, and the last payer absorbs
    the rounding residue.

    Raises:
        InputShapeError: If there are no payments, or they sum to zero
            while there is more than one
    """
    total = to_decimal(expense_amount)
    if not payments:
        raise InputShapeError("At least one payment is required")

    if len(payments) == 1:
        return [payments[0].model_copy(update={"amount": total})]

    paid = sum((p.amount for p in payments), Decimal("0"))
    if paid == 0:
        raise InputShapeError("Cannot rescale payments that sum to zero")

    ratio = total / paid
    scaled = [round_to_cent(p.amount * ratio) for p in payments[:-1]]
    scaled.append(total - sum(scaled, Decimal("0")))

    logger.debug(f"Rescaled {len(payments)} payments from {paid} to {total}")

    return [p.model_copy(update={"amount": amount}) for p, amount in zip(payments, scaled)]


def autofill_amounts(
    total_amount: Decimal | int | float | str,
    participants: Sequence[str],
    entered: Mapping[str, Decimal | int | float | str | None],
) -> dict[str, Decimal]:
    """
    Suggest fixed amounts for an amount-policy split.

    If every participant or no participant has a positive entered amount,
    the total is spread evenly over everyone. Otherwise entered amounts are
    kept and whatever is left of the total is spread over the participants
    without one. In both cases the last filled participant absorbs the
    rounding residue.

    Returns:
        Amount per participant, in participant order
    """
    total = to_decimal(total_amount)
    if not participants:
        return {}

    given: dict[str, Decimal] = {}
    for member_id in participants:
        raw = entered.get(member_id)
        if raw is not None and to_decimal(raw) > 0:
            given[member_id] = to_decimal(raw)

    if not given or len(given) == len(participants):
        return dict(zip(participants, split_evenly(total, len(participants))))

    empty = [member_id for member_id in participants if member_id not in given]
    remaining = max(Decimal("0"), total - sum(given.values(), Decimal("0")))
    fill = dict(zip(empty, split_evenly(remaining, len(empty))))

    return {
        member_id: given[member_id] if member_id in given else fill[member_id]
        for member_id in participants
    }
