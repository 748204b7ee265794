"""Weekly allowance accounting: what is owed, and paying it out."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlmodel import Session, desc, select

from .ledger import credit_category, load_categories
from .models import CategoryAmounts, TransactionType, UndistributedSummary
from .money import ZERO, to_decimal
from .persistence import Distribution
from .recipients import get_owned_recipient

WEEK = timedelta(days=7)


def weeks_between(start: datetime, end: datetime) -> int:
    """Whole weeks from ``start`` to ``end``; never negative."""

    if end <= start:
        return 0
    return (end - start) // WEEK


def total_distributed(session: Session, manager_id: str, recipient_id: str) -> Decimal:
    amounts = session.exec(
        select(Distribution.total_amount)
        .where(Distribution.recipient_id == recipient_id)
        .where(Distribution.manager_id == manager_id)
    ).all()
    return sum((to_decimal(amount) for amount in amounts), ZERO)


def compute_undistributed(
    session: Session, manager_id: str, recipient_id: str, *, now: datetime
) -> UndistributedSummary:
    recipient = get_owned_recipient(session, manager_id, recipient_id, active_only=False)
    weekly = to_decimal(recipient.allowance_amount)
    weeks = weeks_between(recipient.created_at, now)
    owed = weekly * weeks
    distributed = total_distributed(session, manager_id, recipient_id)
    return UndistributedSummary(
        undistributed_amount=max(ZERO, owed - distributed),
        total_distributed=distributed,
        total_allowance_owed=owed,
        weeks_since_created=weeks,
        weekly_allowance=weekly,
    )


def distribute(
    session: Session,
    manager_id: str,
    recipient_id: str,
    amounts: CategoryAmounts,
    *,
    distribution_date: date,
    notes: Optional[str] = None,
    now: datetime,
) -> Distribution:
    """Record a distribution and credit each category it touches.

    The amounts are validated before anything is written. The distribution row,
    the four balance updates and one ledger entry per non-zero amount are added
    to ``session`` and committed by the caller's unit of work in one go.
    Distributing more than the undistributed figure is allowed.
    """

    amounts.validate_split()
    recipient = get_owned_recipient(session, manager_id, recipient_id)
    categories = load_categories(session, recipient.id)
    note_text = (notes or "").strip() or None
    distribution = Distribution(
        recipient_id=recipient.id,
        manager_id=manager_id,
        distribution_date=distribution_date,
        total_amount=amounts.total,
        give_amount=amounts.give,
        spend_amount=amounts.spend,
        save_amount=amounts.save,
        invest_amount=amounts.invest,
        notes=note_text,
        created_at=now,
    )
    session.add(distribution)
    for category, amount in amounts.items():
        if amount == ZERO:
            continue
        credit_category(
            session,
            categories[category],
            amount,
            TransactionType.DISTRIBUTION,
            when=now,
            transaction_date=distribution_date,
            description=note_text or f"Weekly allowance ({category.label})",
            distribution_id=distribution.id,
        )
    return distribution


def list_distributions(session: Session, manager_id: str, recipient_id: str) -> List[Distribution]:
    get_owned_recipient(session, manager_id, recipient_id, active_only=False)
    query = (
        select(Distribution)
        .where(Distribution.recipient_id == recipient_id)
        .where(Distribution.manager_id == manager_id)
        .order_by(desc(Distribution.distribution_date), desc(Distribution.created_at))
    )
    return list(session.exec(query).all())
