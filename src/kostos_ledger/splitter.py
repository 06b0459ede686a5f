"""Core split computation: turn an expense total and a split policy into owed amounts."""

import logging
from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .exceptions import InputShapeError
from .models import Split, SplitType

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """
    Convert a money-like value to Decimal.

    Floats go through str() so that 0.1 becomes Decimal("0.1") rather than
    its binary expansion.

    Raises:
        InputShapeError: If the value is not a number, or is NaN or infinite
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as e:
        raise InputShapeError(f"Not a valid amount: {value!r}") from e
    if not amount.is_finite():
        raise InputShapeError(f"Not a valid amount: {value!r}")
    return amount


def round_to_cent(amount: Decimal) -> Decimal:
    """Round a Decimal amount to whole cents using ROUND_HALF_UP."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _assign_residual(owed: list[Decimal], total: Decimal) -> list[Decimal]:
    """Give the last participant whatever makes the list sum to total exactly."""
    residual = total - sum(owed, Decimal("0"))
    if residual != 0:
        owed[-1] += residual
        logger.debug(f"Assigned rounding residual {residual} to last participant")
    return owed


def split_evenly(total: Decimal, count: int) -> list[Decimal]:
    """
    Divide total evenly.

    Everyone but the last participant gets total / count rounded to the
    cent; the last participant takes the remainder. When rounding up
    overshoots, that remainder can be smaller than everyone else's share or
    even negative: 0.05 across 9 gives eight 0.01 shares and -0.03.
    """
    per_person = round_to_cent(total / count)
    owed = [per_person] * (count - 1)
    owed.append(total - per_person * (count - 1))
    return owed


def _weighted_amounts(total: Decimal, weights: list[Decimal]) -> list[Decimal]:
    """Divide total proportionally to weights. Caller guarantees sum(weights) > 0."""
    weight_sum = sum(weights, Decimal("0"))
    owed = [round_to_cent(total * weight / weight_sum) for weight in weights]
    return _assign_residual(owed, total)


def compute_splits(
    total_amount: Decimal | int | float | str,
    participants: Sequence[str],
    policy: SplitType | str,
    weights: Mapping[str, Decimal | int | float | str | None] | None = None,
    amounts: Mapping[str, Decimal | int | float | str | None] | None = None,
) -> list[Split]:
    """
    Compute each participant's owed amount for an expense.

    Policies:
    - even: total / n rounded to the cent, last participant absorbs the residue
    - amount: owed amount is the entered amount, no redistribution
    - shares: total * weight / sum(weights) rounded to the cent, last
      participant absorbs the residue; all-zero weights fall back to even

    This is a pure function. Any change to the inputs means calling it again;
    results are never patched incrementally.

    Args:
        total_amount: Expense total, must be > 0
        participants: Ordered participant member ids
        policy: Split policy (SplitType or its string tag)
        weights: Share weight per member id (shares policy)
        amounts: Entered amount per member id (amount policy)

    Returns:
        One Split per participant, in participant order. Empty if there are
        no participants.

    Raises:
        InputShapeError: If the total is not positive, participants repeat,
            a weight is negative or the policy is unknown
    """
    total = to_decimal(total_amount)
    if total <= 0:
        raise InputShapeError(f"Expense amount must be greater than 0 (got {total})")

    try:
        split_type = SplitType.parse(policy)
    except ValueError as e:
        raise InputShapeError(f"Unknown split type: {policy!r}") from e

    if len(set(participants)) != len(participants):
        raise InputShapeError("Participants must not contain duplicates")

    if not participants:
        return []

    weights = weights or {}
    amounts = amounts or {}
    count = len(participants)

    if split_type is SplitType.EVEN:
        owed = split_evenly(total, count)
        return [
            Split(member_id=member_id, owed_amount=owed_amount)
            for member_id, owed_amount in zip(participants, owed)
        ]

    if split_type is SplitType.AMOUNT:
        splits = []
        for member_id in participants:
            entered = amounts.get(member_id)
            amount = to_decimal(entered) if entered is not None else Decimal("0")
            splits.append(Split(member_id=member_id, owed_amount=amount, amount=amount))
        return splits

    if split_type is SplitType.SHARES:
        share_weights = []
        for member_id in participants:
            raw = weights.get(member_id)
            weight = to_decimal(raw) if raw is not None else Decimal("0")
            if weight < 0:
                raise InputShapeError(
                    f"Share weight for {member_id} must not be negative (got {weight})"
                )
            share_weights.append(weight)

        if sum(share_weights, Decimal("0")) == 0:
            logger.info(
                f"All share weights are zero, splitting {total} evenly "
                f"across {count} participants"
            )
            owed = split_evenly(total, count)
        else:
            owed = _weighted_amounts(total, share_weights)

        return [
            Split(member_id=member_id, owed_amount=owed_amount, shares=weight)
            for member_id, owed_amount, weight in zip(participants, owed, share_weights)
        ]

    raise InputShapeError(f"Unhandled split type: {split_type!r}")
