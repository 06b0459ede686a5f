"""Custom exceptions for Kostos Ledger."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .validator import SumMismatch


class KostosLedgerError(Exception):
    """Base exception for all Kostos Ledger errors."""

    pass


class ConfigurationError(KostosLedgerError):
    """Raised when configuration is invalid or missing."""

    pass


class InputShapeError(KostosLedgerError, ValueError):
    """Raised when split or payment input is malformed.

    Callers are expected to pre-validate form input, so this signals a
    programming error in the host rather than a user mistake.
    """

    pass


class LedgerFileError(KostosLedgerError):
    """Raised when a project snapshot cannot be read or parsed."""

    pass


class SplitMismatchError(KostosLedgerError):
    """Raised when an expense draft does not add up to its total."""

    def __init__(self, mismatch: "SumMismatch", message: str | None = None):
        self.mismatch = mismatch
        super().__init__(
            message
            or f"{mismatch.kind.value.capitalize()} total {mismatch.actual} "
            f"does not match expense amount {mismatch.expected}"
        )
