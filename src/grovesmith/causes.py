"""Charitable causes: goal-tracked earmarks inside the Give category.

Allocating to a cause moves no money. It only reserves part of the Give
balance, so the free ("unallocated") part is always derived as the Give
balance minus what active causes hold. Money leaves the Give category when a
cause is completed.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlmodel import Session, select

from .exceptions import (
    AlreadyCompletedError,
    GoalBelowAllocatedError,
    GoalExceededError,
    InsufficientCategoryBalanceError,
    InsufficientUnallocatedFundsError,
    MaxCausesExceededError,
    NotFoundOrAccessDeniedError,
    ValidationError,
)
from .ledger import complete_charitable_donation, load_categories
from .models import CategoryType, CauseUpdate, GiveBalance
from .money import ZERO, AmountLike, format_currency, require_positive, to_decimal
from .persistence import CharitableCause, LedgerTransaction, Recipient
from .recipients import get_owned_recipient

MAX_ACTIVE_CAUSES = 3


def _active_causes_query(recipient_id: str):
    return (
        select(CharitableCause)
        .where(CharitableCause.recipient_id == recipient_id)
        .where(CharitableCause.is_completed == False)  # noqa: E712
    )


def get_owned_cause(session: Session, manager_id: str, cause_id: str) -> CharitableCause:
    """Load a cause through its recipient so the manager filter always applies."""

    cause = session.exec(
        select(CharitableCause)
        .join(Recipient, Recipient.id == CharitableCause.recipient_id)
        .where(CharitableCause.id == cause_id)
        .where(Recipient.manager_id == manager_id)
    ).first()
    if cause is None:
        raise NotFoundOrAccessDeniedError("Charitable cause not found or access denied.")
    return cause


def list_causes(session: Session, manager_id: str, recipient_id: str) -> List[CharitableCause]:
    get_owned_recipient(session, manager_id, recipient_id, active_only=False)
    query = (
        select(CharitableCause)
        .where(CharitableCause.recipient_id == recipient_id)
        .order_by(CharitableCause.created_at)
    )
    return list(session.exec(query).all())


def give_balance(session: Session, recipient_id: str) -> GiveBalance:
    give = load_categories(session, recipient_id)[CategoryType.GIVE]
    active = session.exec(_active_causes_query(recipient_id)).all()
    allocated = sum((to_decimal(cause.current_amount) for cause in active), ZERO)
    return GiveBalance(total_unspent=to_decimal(give.balance), total_allocated=allocated)


def get_give_balance(session: Session, manager_id: str, recipient_id: str) -> GiveBalance:
    get_owned_recipient(session, manager_id, recipient_id, active_only=False)
    return give_balance(session, recipient_id)


def create_cause(
    session: Session,
    manager_id: str,
    recipient_id: str,
    name: str,
    goal_amount: AmountLike,
    *,
    description: Optional[str] = None,
    due_date: Optional[date] = None,
    when: datetime,
) -> CharitableCause:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Cause name is required.")
    goal = require_positive(to_decimal(goal_amount), label="Goal amount")
    recipient = get_owned_recipient(session, manager_id, recipient_id)
    active = session.exec(_active_causes_query(recipient.id)).all()
    if len(active) >= MAX_ACTIVE_CAUSES:
        raise MaxCausesExceededError(f"Maximum of {MAX_ACTIVE_CAUSES} active causes allowed per recipient.")
    cause = CharitableCause(
        recipient_id=recipient.id,
        name=cleaned,
        description=(description or "").strip() or None,
        goal_amount=goal,
        current_amount=ZERO,
        due_date=due_date,
        created_at=when,
        updated_at=when,
    )
    session.add(cause)
    return cause


def allocate(session: Session, manager_id: str, cause_id: str, amount: AmountLike, *, when: datetime) -> CharitableCause:
    value = require_positive(to_decimal(amount))
    cause = get_owned_cause(session, manager_id, cause_id)
    if cause.is_completed:
        raise AlreadyCompletedError(f"'{cause.name}' has already been completed.")
    current = to_decimal(cause.current_amount)
    if current + value > to_decimal(cause.goal_amount):
        remaining = to_decimal(cause.goal_amount) - current
        raise GoalExceededError(
            f"Allocation exceeds the goal amount; only {format_currency(remaining)} more is needed."
        )
    available = give_balance(session, cause.recipient_id).unallocated
    if value > available:
        raise InsufficientUnallocatedFundsError(
            f"Insufficient unallocated funds; {format_currency(available)} is available."
        )
    cause.current_amount = current + value
    cause.updated_at = when
    session.add(cause)
    return cause


def mark_complete(session: Session, manager_id: str, cause_id: str, *, when: datetime) -> LedgerTransaction:
    cause = get_owned_cause(session, manager_id, cause_id)
    if cause.is_completed:
        raise AlreadyCompletedError(f"'{cause.name}' has already been completed.")
    donation = to_decimal(cause.current_amount)
    if donation <= ZERO:
        raise ValidationError("Allocate money to this cause before completing it.")
    give = load_categories(session, cause.recipient_id)[CategoryType.GIVE]
    if to_decimal(give.balance) < donation:
        raise InsufficientCategoryBalanceError("Insufficient funds in Give category.")
    return complete_charitable_donation(
        session, cause.id, cause.recipient_id, donation, cause.name, when=when
    )


def delete_cause(session: Session, manager_id: str, cause_id: str) -> CharitableCause:
    """Remove a cause. Its allocation returns to the unallocated Give money."""

    cause = get_owned_cause(session, manager_id, cause_id)
    session.delete(cause)
    return cause


def update_cause(
    session: Session, manager_id: str, cause_id: str, changes: CauseUpdate, *, when: datetime
) -> CharitableCause:
    name: Optional[str] = None
    if changes.name is not None:
        name = changes.name.strip()
        if not name:
            raise ValidationError("Cause name is required.")
    goal: Optional[Decimal] = None
    if changes.goal_amount is not None:
        goal = require_positive(to_decimal(changes.goal_amount), label="Goal amount")
    cause = get_owned_cause(session, manager_id, cause_id)
    if cause.is_completed:
        raise AlreadyCompletedError(f"'{cause.name}' has already been completed.")
    if goal is not None and goal < to_decimal(cause.current_amount):
        raise GoalBelowAllocatedError(
            f"Goal cannot be lower than the {format_currency(to_decimal(cause.current_amount))} already allocated."
        )
    if name is not None:
        cause.name = name
    if changes.description is not None:
        cause.description = changes.description.strip() or None
    if goal is not None:
        cause.goal_amount = goal
    if changes.clear_due_date:
        cause.due_date = None
    elif changes.due_date is not None:
        cause.due_date = changes.due_date
    cause.updated_at = when
    session.add(cause)
    return cause
