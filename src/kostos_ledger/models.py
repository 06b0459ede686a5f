"""Pydantic domain models for Kostos Ledger."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Differences at or below this many currency units count as settled
TOLERANCE = Decimal("0.01")


class LedgerModel(BaseModel):
    """Base model accepting both camelCase wire keys and snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Split policy
# ============================================================================


class SplitType(str, Enum):
    """How an expense is divided among its participants."""

    EVEN = "even"
    AMOUNT = "amount"
    SHARES = "shares"

    @classmethod
    def parse(cls, value: Any) -> "SplitType":
        """Parse a policy tag, mapping the legacy ``percent`` tag to shares."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            tag = value.strip().lower()
            if tag == "percent":
                return cls.SHARES
            return cls(tag)
        raise ValueError(f"Unknown split type: {value!r}")


SplitTypeField = Annotated[SplitType, BeforeValidator(SplitType.parse)]


# ============================================================================
# Project Models
# ============================================================================


class Member(LedgerModel):
    """A member of a shared project."""

    id: str
    name: str


class Payment(LedgerModel):
    """Who actually paid for an expense, and how much."""

    member_id: str
    amount: Decimal


class Split(LedgerModel):
    """A member's share of responsibility for an expense.

    owed_amount is the computed obligation. amount and shares keep what
    the user entered for fixed-amount and share-weighted splitting.
    percent is only present on expenses created before shares existed.
    """

    member_id: str
    owed_amount: Decimal = Decimal("0")
    amount: Decimal | None = None
    shares: Decimal | None = None
    percent: Decimal | None = None

    @property
    def weight(self) -> Decimal | None:
        """Share weight, falling back to the legacy percent field."""
        return self.shares if self.shares is not None else self.percent


class Expense(LedgerModel):
    """A single shared cost with its payments and splits."""

    id: str
    description: str = ""
    amount: Decimal
    split_type: SplitTypeField = SplitType.EVEN
    date: datetime | None = None
    category_id: str | None = None
    payment_method_id: str | None = None
    notes: str | None = None
    participants: list[str] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)
    splits: list[Split] = Field(default_factory=list)

    def participant_ids(self) -> list[str]:
        """Participants in split order.

        Uses the explicit participant list when present, otherwise every
        member whose split carries an obligation or an entered value.
        """
        if self.participants:
            return list(self.participants)
        return [
            split.member_id
            for split in self.splits
            if split.owed_amount != 0
            or split.amount is not None
            or split.weight is not None
        ]


class ExpenseDraft(LedgerModel):
    """In-progress expense form state, re-submitted on every edit."""

    amount: Decimal
    split_type: SplitTypeField = SplitType.EVEN
    participants: list[str] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)
    amounts: dict[str, Decimal] = Field(default_factory=dict)
    shares: dict[str, Decimal] = Field(default_factory=dict)
    description: str = ""
    date: datetime | None = None
    category_id: str | None = None
    payment_method_id: str | None = None
    notes: str | None = None


class Project(LedgerModel):
    """Snapshot of a project as handed over by the persistence layer."""

    id: str
    name: str
    # None when the snapshot does not name one; the service fills in the default
    currency: str | None = None
    members: list[Member] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)

    def member_name(self, member_id: str) -> str:
        """Display name for a member id, or 'Unknown'."""
        for member in self.members:
            if member.id == member_id:
                return member.name
        return "Unknown"


# ============================================================================
# Settlement Models
# ============================================================================


class Transfer(LedgerModel):
    """A proposed settling payment. Derived, never persisted."""

    from_member_id: str
    to_member_id: str
    amount: Decimal


class MemberBalance(LedgerModel):
    """A member's net position together with who they pay and who pays them."""

    member_id: str
    name: str
    balance: Decimal
    owes: list[Transfer] = Field(default_factory=list)
    is_owed: list[Transfer] = Field(default_factory=list)
