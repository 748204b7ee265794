"""Custom exception hierarchy for the Grovesmith package."""

from __future__ import annotations


class GrovesmithError(Exception):
    """Base class for all Grovesmith specific errors."""


class NotAuthenticatedError(GrovesmithError):
    """Raised when an operation is attempted without a signed-in manager."""


class NotFoundOrAccessDeniedError(GrovesmithError):
    """Raised when a recipient or cause does not exist or belongs to someone else."""


class ValidationError(GrovesmithError, ValueError):
    """Raised when input is rejected before anything is written."""


class MaxCausesExceededError(GrovesmithError):
    """Raised when a recipient already holds the maximum number of active causes."""


class GoalExceededError(GrovesmithError):
    """Raised when an allocation would push a cause past its goal."""


class GoalBelowAllocatedError(GrovesmithError):
    """Raised when a cause goal is lowered below the amount already allocated."""


class InsufficientUnallocatedFundsError(GrovesmithError):
    """Raised when the Give category has too little unallocated money."""


class InsufficientCategoryBalanceError(GrovesmithError):
    """Raised when a category debit would result in a negative balance."""


class AlreadyCompletedError(GrovesmithError):
    """Raised when a completed cause is modified or completed again."""


class StorageFailureError(GrovesmithError):
    """Raised when the data store rejects or only partially applies a write."""
