"""Recipient profiles: creation, editing, archiving and account resets."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, update
from sqlmodel import Session, select

from .exceptions import NotFoundOrAccessDeniedError, ValidationError
from .ledger import balances_for_many, open_categories
from .models import RecipientSummary
from .money import ZERO, AmountLike, require_positive, to_decimal
from .persistence import AllowanceCategory, CharitableCause, Distribution, LedgerTransaction, Manager, Recipient


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Name is required.")
    return cleaned


def get_owned_recipient(
    session: Session, manager_id: str, recipient_id: str, *, active_only: bool = True
) -> Recipient:
    """Load a recipient, filtered by its owning manager."""

    query = select(Recipient).where(Recipient.id == recipient_id).where(Recipient.manager_id == manager_id)
    if active_only:
        query = query.where(Recipient.is_active == True)  # noqa: E712
    recipient = session.exec(query).first()
    if recipient is None:
        raise NotFoundOrAccessDeniedError("Recipient not found or access denied.")
    return recipient


def ensure_manager(
    session: Session, manager_id: str, *, email: Optional[str], full_name: Optional[str], when: datetime
) -> Optional[Manager]:
    """Create the manager row if it is missing. Returns the new row, or ``None``."""

    if session.get(Manager, manager_id) is not None:
        return None
    manager = Manager(id=manager_id, email=email, full_name=full_name, created_at=when, updated_at=when)
    session.add(manager)
    return manager


def create_recipient(
    session: Session, manager_id: str, name: str, allowance_amount: AmountLike, *, when: datetime
) -> Recipient:
    cleaned = _clean_name(name)
    allowance = require_positive(to_decimal(allowance_amount), allow_zero=True, label="Allowance amount")
    recipient = Recipient(
        manager_id=manager_id,
        name=cleaned,
        allowance_amount=allowance,
        created_at=when,
        updated_at=when,
    )
    session.add(recipient)
    open_categories(session, recipient.id, when=when)
    return recipient


def update_profile(
    session: Session,
    manager_id: str,
    recipient_id: str,
    name: str,
    allowance_amount: AmountLike,
    avatar_url: Optional[str] = None,
    *,
    when: datetime,
) -> Recipient:
    cleaned = _clean_name(name)
    allowance = require_positive(to_decimal(allowance_amount), label="Allowance amount")
    recipient = get_owned_recipient(session, manager_id, recipient_id)
    recipient.name = cleaned
    recipient.allowance_amount = allowance
    recipient.avatar_url = (avatar_url or "").strip() or None
    recipient.updated_at = when
    session.add(recipient)
    return recipient


def set_archived(session: Session, manager_id: str, recipient_id: str, archived: bool, *, when: datetime) -> Recipient:
    recipient = get_owned_recipient(session, manager_id, recipient_id)
    recipient.is_archived = archived
    recipient.updated_at = when
    session.add(recipient)
    return recipient


def reset_account(session: Session, manager_id: str, recipient_id: str, *, when: datetime) -> Recipient:
    """Return a recipient's finances to a blank slate.

    Balances go to zero, causes keep existing but lose their allocations and
    completion, and every ledger entry and distribution is removed. The
    statements share the caller's unit of work.
    """

    recipient = get_owned_recipient(session, manager_id, recipient_id)
    session.exec(
        update(AllowanceCategory)
        .where(AllowanceCategory.recipient_id == recipient.id)
        .values(balance=ZERO, updated_at=when)
    )
    session.exec(
        update(CharitableCause)
        .where(CharitableCause.recipient_id == recipient.id)
        .values(current_amount=ZERO, is_completed=False, completed_at=None, updated_at=when)
    )
    session.exec(delete(LedgerTransaction).where(LedgerTransaction.recipient_id == recipient.id))
    session.exec(
        delete(Distribution)
        .where(Distribution.recipient_id == recipient.id)
        .where(Distribution.manager_id == manager_id)
    )
    return recipient


def summarize(session: Session, recipients: List[Recipient]) -> List[RecipientSummary]:
    balances = balances_for_many(session, [recipient.id for recipient in recipients])
    return [
        RecipientSummary(
            id=recipient.id,
            name=recipient.name,
            allowance_amount=to_decimal(recipient.allowance_amount),
            avatar_url=recipient.avatar_url,
            is_archived=recipient.is_archived,
            created_at=recipient.created_at,
            balances=balances[recipient.id],
        )
        for recipient in recipients
    ]


def list_recipients(session: Session, manager_id: str, *, include_archived: bool = False) -> List[RecipientSummary]:
    query = (
        select(Recipient)
        .where(Recipient.manager_id == manager_id)
        .where(Recipient.is_active == True)  # noqa: E712
    )
    if not include_archived:
        query = query.where(Recipient.is_archived == False)  # noqa: E712
    recipients = list(session.exec(query.order_by(Recipient.created_at)).all())
    return summarize(session, recipients)
