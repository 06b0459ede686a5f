"""Kostos Ledger - Split shared expenses and settle the balances."""

__version__ = "0.1.0"

from .autofill import autofill_amounts, fill_remaining_payment, rescale_payments
from .config import Settings, load_settings
from .ledger import aggregate
from .models import (
    Expense,
    ExpenseDraft,
    Member,
    Payment,
    Project,
    Split,
    SplitType,
    Transfer,
)
from .service import LedgerService
from .simplifier import simplify
from .splitter import compute_splits
from .stats import ProjectStats, project_stats
from .validator import SumMismatch, ValidationOk, expense_mismatches, validate

__all__ = [
    "Settings",
    "load_settings",
    "aggregate",
    "autofill_amounts",
    "fill_remaining_payment",
    "rescale_payments",
    "Expense",
    "ExpenseDraft",
    "Member",
    "Payment",
    "Project",
    "Split",
    "SplitType",
    "Transfer",
    "LedgerService",
    "simplify",
    "compute_splits",
    "ProjectStats",
    "project_stats",
    "SumMismatch",
    "ValidationOk",
    "expense_mismatches",
    "validate",
]
