"""Spending statistics for a project.

Totals by category, payment method, month and split type, plus what each
member paid and owes. Everything is derived from the snapshot on every call;
nothing here is persisted.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import date
from decimal import Decimal

from pydantic import Field

from .ledger import member_totals, total_spent
from .models import Expense, LedgerModel, Member, Project, SplitType
from .splitter import round_to_cent

logger = logging.getLogger(__name__)

# Group key for expenses without a category or payment method
UNASSIGNED = "none"


# ============================================================================
# Stats Models
# ============================================================================


class MemberSpending(LedgerModel):
    """What one member paid and owes over a set of expenses."""

    member_id: str
    name: str
    paid: Decimal
    owed: Decimal
    balance: Decimal
    expense_count: int = 0


class GroupTotal(LedgerModel):
    """Expenses sharing a category or payment method."""

    key: str
    total_amount: Decimal
    percentage: Decimal
    expense_count: int
    average_amount: Decimal
    largest_expense_id: str | None = None
    member_spending: list[MemberSpending] = Field(default_factory=list)


class MonthTotal(LedgerModel):
    """Spending in one calendar month (YYYY-MM)."""

    month: str
    amount: Decimal
    change_percent: Decimal = Decimal("0")


class SplitTypeTotal(LedgerModel):
    """Number and amount of expenses using one split policy."""

    count: int = 0
    amount: Decimal = Decimal("0")


class ProjectStats(LedgerModel):
    """Summary statistics for a project, or a filtered slice of it."""

    currency: str | None = None
    total_amount: Decimal
    expense_count: int
    average_amount: Decimal
    largest_expense_id: str | None = None
    by_category: list[GroupTotal] = Field(default_factory=list)
    by_payment_method: list[GroupTotal] = Field(default_factory=list)
    by_month: list[MonthTotal] = Field(default_factory=list)
    by_split_type: dict[str, SplitTypeTotal] = Field(default_factory=dict)
    member_spending: list[MemberSpending] = Field(default_factory=list)


# ============================================================================
# Aggregations
# ============================================================================


def _percentage(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return Decimal("0")
    return round_to_cent(part * 100 / whole)


def _average(total: Decimal, count: int) -> Decimal:
    if count == 0:
        return Decimal("0")
    return round_to_cent(total / count)


def _largest(expenses: Sequence[Expense]) -> str | None:
    """Id of the most expensive expense; the first one wins a tie."""
    if not expenses:
        return None
    return max(expenses, key=lambda expense: expense.amount).id


def _involves(expense: Expense, member_id: str) -> bool:
    return any(
        p.member_id == member_id and p.amount != 0 for p in expense.payments
    ) or any(s.member_id == member_id and s.owed_amount != 0 for s in expense.splits)


def filter_expenses(
    expenses: Iterable[Expense],
    since: date | None = None,
    until: date | None = None,
    category_id: str | None = None,
    payment_method_id: str | None = None,
) -> list[Expense]:
    """
    Select the expenses a statistics view covers.

    Date bounds are inclusive and compare calendar days. Expenses without a
    date are left out as soon as either bound is given.

    Args:
        expenses: Expenses to filter
        since: First day to include
        until: Last day to include
        category_id: Only expenses in this category
        payment_method_id: Only expenses paid with this method

    Returns:
        Matching expenses, in their original order
    """
    selected = []
    for expense in expenses:
        if since is not None or until is not None:
            if expense.date is None:
                continue
            day = expense.date.date()
            if since is not None and day < since:
                continue
            if until is not None and day > until:
                continue
        if category_id is not None and expense.category_id != category_id:
            continue
        if payment_method_id is not None and expense.payment_method_id != payment_method_id:
            continue
        selected.append(expense)
    return selected


def spending_by_member(
    members: Sequence[Member], expenses: Sequence[Expense]
) -> list[MemberSpending]:
    """Paid, owed and balance per member, in member order."""
    rows = []
    for member in members:
        paid, owed = member_totals(member.id, expenses)
        rows.append(
            MemberSpending(
                member_id=member.id,
                name=member.name,
                paid=paid,
                owed=owed,
                balance=paid - owed,
                expense_count=sum(1 for e in expenses if _involves(e, member.id)),
            )
        )
    return rows


def group_totals(
    expenses: Sequence[Expense],
    members: Sequence[Member],
    key_of: Callable[[Expense], str | None],
) -> list[GroupTotal]:
    """
    Totals per group, largest first.

    Expenses whose key is missing are collected under UNASSIGNED.
    """
    grand_total = total_spent(expenses)
    groups: dict[str, list[Expense]] = {}
    for expense in expenses:
        groups.setdefault(key_of(expense) or UNASSIGNED, []).append(expense)

    totals = []
    for key, items in groups.items():
        amount = total_spent(items)
        totals.append(
            GroupTotal(
                key=key,
                total_amount=amount,
                percentage=_percentage(amount, grand_total),
                expense_count=len(items),
                average_amount=_average(amount, len(items)),
                largest_expense_id=_largest(items),
                member_spending=spending_by_member(members, items),
            )
        )

    totals.sort(key=lambda group: group.total_amount, reverse=True)
    return totals


def monthly_totals(expenses: Iterable[Expense]) -> list[MonthTotal]:
    """
    Spending per calendar month, oldest first.

    change_percent compares with the previous listed month: 0 for the first
    month and 100 when the previous month was 0. Undated expenses are skipped.
    """
    amounts: dict[str, Decimal] = {}
    for expense in expenses:
        if expense.date is None:
            continue
        month = expense.date.strftime("%Y-%m")
        amounts[month] = amounts.get(month, Decimal("0")) + expense.amount

    months = []
    previous = None
    for month in sorted(amounts):
        amount = amounts[month]
        if previous is None:
            change = Decimal("0")
        elif previous == 0:
            change = Decimal("100")
        else:
            change = round_to_cent((amount - previous) * 100 / previous)
        months.append(MonthTotal(month=month, amount=amount, change_percent=change))
        previous = amount
    return months


def split_type_totals(expenses: Iterable[Expense]) -> dict[str, SplitTypeTotal]:
    """Count and amount per split policy. Every policy is present."""
    totals = {split_type.value: SplitTypeTotal() for split_type in SplitType}
    for expense in expenses:
        entry = totals[expense.split_type.value]
        entry.count += 1
        entry.amount += expense.amount
    return totals


def project_stats(
    project: Project,
    since: date | None = None,
    until: date | None = None,
    category_id: str | None = None,
    payment_method_id: str | None = None,
) -> ProjectStats:
    """
    Compute spending statistics for a project.

    Args:
        project: Project snapshot
        since: First day to include
        until: Last day to include
        category_id: Only expenses in this category
        payment_method_id: Only expenses paid with this method

    Returns:
        ProjectStats over the selected expenses. Member spending is sorted
        by amount paid, largest first.
    """
    expenses = filter_expenses(
        project.expenses,
        since=since,
        until=until,
        category_id=category_id,
        payment_method_id=payment_method_id,
    )
    total = total_spent(expenses)

    members = spending_by_member(project.members, expenses)
    members.sort(key=lambda row: row.paid, reverse=True)

    logger.debug(
        f"Stats for '{project.name}': {len(expenses)} of "
        f"{len(project.expenses)} expenses, total {total}"
    )

    return ProjectStats(
        currency=project.currency,
        total_amount=total,
        expense_count=len(expenses),
        average_amount=_average(total, len(expenses)),
        largest_expense_id=_largest(expenses),
        by_category=group_totals(expenses, project.members, lambda e: e.category_id),
        by_payment_method=group_totals(
            expenses, project.members, lambda e: e.payment_method_id
        ),
        by_month=monthly_totals(expenses),
        by_split_type=split_type_totals(expenses),
        member_spending=members,
    )
