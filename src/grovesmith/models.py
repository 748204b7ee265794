"""Domain models used by the Grovesmith package."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Iterator, Mapping, Optional, Tuple

from .money import ZERO, AmountLike, require_positive, to_decimal


class CategoryType(str, Enum):
    """The four fixed buckets every recipient's allowance is split into."""

    GIVE = "give"
    SPEND = "spend"
    SAVE = "save"
    INVEST = "invest"

    @property
    def label(self) -> str:
        return self.value.title()


class TransactionType(str, Enum):
    """Enumerates the supported types of category ledger entries."""

    DISTRIBUTION = "distribution"
    WITHDRAWAL = "withdrawal"
    DIVIDEND = "dividend"
    BONUS = "bonus"

    @property
    def label(self) -> str:
        if self is TransactionType.DISTRIBUTION:
            return "Allowance"
        return self.value.title()


@dataclass(frozen=True, slots=True)
class CategoryAmounts:
    """One amount per category.

    Used both for the split of a distribution and for a recipient's current
    balances, so "exactly four categories" is a property of the type rather
    than of a dictionary's keys.
    """

    give: Decimal = ZERO
    spend: Decimal = ZERO
    save: Decimal = ZERO
    invest: Decimal = ZERO

    def __post_init__(self) -> None:
        for category in CategoryType:
            object.__setattr__(self, category.value, to_decimal(getattr(self, category.value)))

    @classmethod
    def from_mapping(cls, values: Mapping[CategoryType, AmountLike]) -> "CategoryAmounts":
        return cls(**{category.value: values.get(category, ZERO) for category in CategoryType})

    def __getitem__(self, category: CategoryType) -> Decimal:
        return getattr(self, CategoryType(category).value)

    def items(self) -> Iterator[Tuple[CategoryType, Decimal]]:
        for category in CategoryType:
            yield category, self[category]

    @property
    def total(self) -> Decimal:
        return sum((amount for _, amount in self.items()), ZERO)

    def validate_split(self) -> "CategoryAmounts":
        """Check the amounts describe a valid distribution."""

        for category, amount in self.items():
            require_positive(amount, allow_zero=True, label=f"{category.label} amount")
        require_positive(self.total, label="Distribution amount")
        return self


CategoryBalances = CategoryAmounts


@dataclass(frozen=True, slots=True)
class UndistributedSummary:
    """Result of the undistributed allowance calculation."""

    undistributed_amount: Decimal
    total_distributed: Decimal
    total_allowance_owed: Decimal
    weeks_since_created: int
    weekly_allowance: Decimal


@dataclass(frozen=True, slots=True)
class GiveBalance:
    """How the Give category balance is split between causes and free money."""

    total_unspent: Decimal
    total_allocated: Decimal

    @property
    def unallocated(self) -> Decimal:
        return self.total_unspent - self.total_allocated


@dataclass(frozen=True, slots=True)
class RecipientSummary:
    """Snapshot of a recipient used by the dashboard and profile pages."""

    id: str
    name: str
    allowance_amount: Decimal
    avatar_url: Optional[str]
    is_archived: bool
    created_at: datetime
    balances: CategoryBalances


@dataclass(frozen=True, slots=True)
class CauseUpdate:
    """Fields of a charitable cause that may be edited.

    ``None`` leaves a field unchanged; ``clear_due_date`` removes the due date.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    goal_amount: Optional[AmountLike] = None
    due_date: Optional[date] = None
    clear_due_date: bool = False
