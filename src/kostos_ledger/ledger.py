"""Fold a project's expenses into net per-member balances."""

import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal

from .models import Expense, Member

logger = logging.getLogger(__name__)


def member_id_of(member: Member | str) -> str:
    """Accept either a Member or a bare member id."""
    return member if isinstance(member, str) else member.id


def aggregate(
    members: Sequence[Member | str], expenses: Iterable[Expense]
) -> dict[str, Decimal]:
    """
    Compute each member's balance: total paid minus total owed.

    Positive balances are owed money, negative balances owe money. Inputs are
    already cent-rounded, so the fold introduces no rounding of its own and
    the result does not depend on expense order.

    Args:
        members: Project members (Member objects or ids), in display order
        expenses: Expenses with their payments and splits

    Returns:
        Balance per member id. Every member is present, starting at zero.
    """
    balances = {member_id_of(member): Decimal("0") for member in members}

    def _post(member_id: str, amount: Decimal, expense_id: str) -> None:
        if member_id not in balances:
            logger.warning(
                f"Expense {expense_id} references unknown member {member_id}"
            )
            balances[member_id] = Decimal("0")
        balances[member_id] += amount

    for expense in expenses:
        for payment in expense.payments:
            _post(payment.member_id, payment.amount, expense.id)
        for split in expense.splits:
            _post(split.member_id, -split.owed_amount, expense.id)

    return balances


def total_spent(expenses: Iterable[Expense]) -> Decimal:
    """Sum of all expense amounts."""
    return sum((expense.amount for expense in expenses), Decimal("0"))


def member_totals(
    member_id: str, expenses: Iterable[Expense]
) -> tuple[Decimal, Decimal]:
    """
    Total paid and total owed by one member.

    Returns:
        Tuple of (paid, owed)
    """
    paid = Decimal("0")
    owed = Decimal("0")
    for expense in expenses:
        paid += sum(
            (p.amount for p in expense.payments if p.member_id == member_id),
            Decimal("0"),
        )
        owed += sum(
            (s.owed_amount for s in expense.splits if s.member_id == member_id),
            Decimal("0"),
        )
    return paid, owed
