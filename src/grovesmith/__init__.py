"""Grovesmith: weekly allowance tracking across Give, Spend, Save and Invest."""

from .exceptions import (
    AlreadyCompletedError,
    GoalBelowAllocatedError,
    GoalExceededError,
    GrovesmithError,
    InsufficientCategoryBalanceError,
    InsufficientUnallocatedFundsError,
    MaxCausesExceededError,
    NotAuthenticatedError,
    NotFoundOrAccessDeniedError,
    StorageFailureError,
    ValidationError,
)
from .models import (
    CategoryAmounts,
    CategoryBalances,
    CategoryType,
    CauseUpdate,
    GiveBalance,
    RecipientSummary,
    TransactionType,
    UndistributedSummary,
)
from .ops import StructuredLogger
from .security import AuthManager
from .service import Grovesmith
from .themes import ProfileTheme, theme_for
from .trophies import Trophy, display_trophies, earned_trophies

__all__ = [
    "AuthManager",
    "CategoryAmounts",
    "CategoryBalances",
    "CategoryType",
    "CauseUpdate",
    "GiveBalance",
    "Grovesmith",
    "ProfileTheme",
    "RecipientSummary",
    "StructuredLogger",
    "TransactionType",
    "Trophy",
    "UndistributedSummary",
    "display_trophies",
    "earned_trophies",
    "theme_for",
    "GrovesmithError",
    "NotAuthenticatedError",
    "NotFoundOrAccessDeniedError",
    "ValidationError",
    "MaxCausesExceededError",
    "GoalExceededError",
    "GoalBelowAllocatedError",
    "InsufficientUnallocatedFundsError",
    "InsufficientCategoryBalanceError",
    "AlreadyCompletedError",
    "StorageFailureError",
]
