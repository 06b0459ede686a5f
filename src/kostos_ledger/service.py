"""Service layer that composes splitting, validation, aggregation and simplification.

This module provides a higher-level API over the pure ledger functions. Every
call works on the snapshot it is given and returns fresh objects.
"""

import logging
import uuid
from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from pathlib import Path

from pydantic import ValidationError

from .autofill import autofill_amounts, fill_remaining_payment, rescale_payments
from .config import Settings
from .exceptions import LedgerFileError, SplitMismatchError
from .ledger import aggregate
from .models import (
    Expense,
    ExpenseDraft,
    Member,
    MemberBalance,
    Payment,
    Project,
    Split,
    SplitType,
    Transfer,
)
from .simplifier import simplify
from .splitter import compute_splits
from .stats import ProjectStats, project_stats
from .validator import SumMismatch, expense_mismatches, find_mismatches

logger = logging.getLogger(__name__)


class LedgerService:
    """Service for computing splits, balances and settlements of a project."""

    def __init__(self, settings: Settings):
        """Initialize the ledger service."""
        self.settings = settings

    def load_project(self, path: Path) -> Project:
        """
        Load a project snapshot from a JSON file.

        A snapshot that does not name its currency gets settings.default_currency.

        Raises:
            LedgerFileError: If the file is missing or not a valid snapshot
        """
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise LedgerFileError(f"Cannot read project file {path}: {e}") from e

        try:
            project = Project.model_validate_json(raw)
        except ValidationError as e:
            raise LedgerFileError(f"Invalid project file {path}:\n{e}") from e

        if project.currency is None:
            project = project.model_copy(
                update={"currency": self.settings.default_currency}
            )

        logger.info(
            f"Loaded project '{project.name}' with {len(project.members)} members "
            f"and {len(project.expenses)} expenses"
        )
        return project


    # ========================================================================
    # Expense form
    # ========================================================================

    def fill_payment(self, draft: ExpenseDraft, index: int) -> ExpenseDraft:
        """Let payer `index` cover whatever the other payers leave open."""
        payments = fill_remaining_payment(draft.amount, draft.payments, index)
        return draft.model_copy(update={"payments": payments})

    def autofill_draft(self, draft: ExpenseDraft) -> ExpenseDraft:
        """
        Fill in missing fixed amounts of an amount-policy draft.

        Drafts using another policy are returned unchanged.
        """
        if draft.split_type is not SplitType.AMOUNT:
            return draft.model_copy()
        amounts = autofill_amounts(draft.amount, draft.participants, draft.amounts)
        return draft.model_copy(update={"amounts": amounts})

    def _reconcile_payments(self, draft: ExpenseDraft, editing: bool) -> list[Payment]:
        """
        Adjust payments that no longer match the total.

        A single payer always takes the total. Several payers are rescaled
        proportionally only while editing; otherwise the mismatch is left for
        validation to report.
        """
        payments = [payment.model_copy() for payment in draft.payments]
        paid = sum((payment.amount for payment in payments), Decimal("0"))
        if not payments or abs(paid - draft.amount) <= self.settings.tolerance:
            return payments

        if len(payments) == 1 or (editing and paid != 0):
            logger.info(f"Adjusting payments from {paid} to {draft.amount}")
            return rescale_payments(draft.amount, payments)
        return payments

    def build_expense(
        self,
        draft: ExpenseDraft,
        members: Sequence[Member],
        expense_id: str | None = None,
        editing: bool = False,
    ) -> Expense:
        """
        Turn an expense form snapshot into a validated expense record.

        Computes owed amounts for the participants, adds a zero split for every
        other member, then checks that payments and splits add up.

        Args:
            draft: Current state of the expense form
            members: All project members, in display order
            expense_id: Id to keep when editing; a new one is generated otherwise
            editing: Rescale several payers to a changed total instead of
                rejecting the draft

        Returns:
            The expense, ready to hand to the persistence layer

        Raises:
            InputShapeError: If the draft is malformed
            SplitMismatchError: If payments or splits do not match the amount
        """
        computed = compute_splits(
            draft.amount,
            draft.participants,
            draft.split_type,
            weights=draft.shares,
            amounts=draft.amounts,
        )
        by_member = {split.member_id: split for split in computed}

        splits = [
            by_member.get(member.id, Split(member_id=member.id))
            for member in members
        ]
        known = {member.id for member in members}
        splits += [split for split in computed if split.member_id not in known]

        payments = self._reconcile_payments(draft, editing)

        mismatches = find_mismatches(
            draft.amount,
            payments,
            splits,
            split_type=draft.split_type,
            tolerance=self.settings.tolerance,
        )
        if mismatches:
            logger.info(f"Expense draft rejected: {mismatches[0].describe()}")
            raise SplitMismatchError(mismatches[0])

        expense = Expense(
            id=expense_id or uuid.uuid4().hex,
            description=draft.description,
            amount=draft.amount,
            split_type=draft.split_type,
            date=draft.date,
            category_id=draft.category_id,
            payment_method_id=draft.payment_method_id,
            notes=draft.notes,
            participants=list(draft.participants),
            payments=payments,
            splits=splits,
        )

        logger.debug(
            f"Built expense {expense.id}: {expense.amount} split "
            f"{expense.split_type.value} across {len(draft.participants)} participants"
        )
        return expense

    def edit_expense(
        self, expense: Expense, draft: ExpenseDraft, members: Sequence[Member]
    ) -> Expense:
        """
        Apply an edited form snapshot to a stored expense.

        Participants, payments, fixed amounts and share weights the draft
        leaves empty are taken from the stored expense. The id is kept.

        Raises:
            InputShapeError: If the draft is malformed
            SplitMismatchError: If payments or splits do not match the amount
        """
        update = {}
        if not draft.participants:
            update["participants"] = expense.participant_ids()
        if not draft.payments:
            update["payments"] = [payment.model_copy() for payment in expense.payments]
        if draft.split_type is SplitType.AMOUNT and not draft.amounts:
            update["amounts"] = {
                s.member_id: s.amount for s in expense.splits if s.amount is not None
            }
        if draft.split_type is SplitType.SHARES and not draft.shares:
            update["shares"] = {
                s.member_id: s.weight for s in expense.splits if s.weight is not None
            }
        if update:
            draft = draft.model_copy(update=update)

        return self.build_expense(draft, members, expense_id=expense.id, editing=True)

    # ========================================================================
    # Project views
    # ========================================================================

    def balances(self, project: Project) -> dict[str, Decimal]:
        """Net balance per member id for the whole project."""
        return aggregate(project.members, project.expenses)

    def settle(self, project: Project) -> list[Transfer]:
        """Simplified transfers that settle every balance in the project."""
        balances = self.balances(project)
        transfers = simplify(
            balances, project.members, tolerance=self.settings.tolerance
        )
        logger.info(
            f"Project '{project.name}' settles with {len(transfers)} transfers"
        )
        return transfers

    def member_balances(self, project: Project) -> list[MemberBalance]:
        """
        Each member's balance with the transfers they make and receive.

        Returns:
            One entry per member, in member order
        """
        balances = self.balances(project)
        transfers = simplify(
            balances, project.members, tolerance=self.settings.tolerance
        )

        return [
            MemberBalance(
                member_id=member.id,
                name=member.name,
                balance=balances[member.id],
                owes=[t for t in transfers if t.from_member_id == member.id],
                is_owed=[t for t in transfers if t.to_member_id == member.id],
            )
            for member in project.members
        ]

    def check_project(self, project: Project) -> dict[str, list[SumMismatch]]:
        """
        Validate every expense in a project.

        Returns:
            Mismatches per expense id, only for expenses that fail
        """
        problems = {}
        for expense in project.expenses:
            mismatches = expense_mismatches(expense, tolerance=self.settings.tolerance)
            if mismatches:
                problems[expense.id] = mismatches

        if problems:
            logger.warning(
                f"{len(problems)} of {len(project.expenses)} expenses do not add up"
            )
        return problems

    def stats(
        self,
        project: Project,
        since: date | None = None,
        until: date | None = None,
        category_id: str | None = None,
        payment_method_id: str | None = None,
    ) -> ProjectStats:
        """Spending statistics, optionally limited to a date range, category or payment method."""
        return project_stats(
            project,
            since=since,
            until=until,
            category_id=category_id,
            payment_method_id=payment_method_id,
        )
