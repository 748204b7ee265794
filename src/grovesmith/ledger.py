"""Category balances, ledger entries and the all-or-nothing write boundary.

Balances only move through :func:`credit_category` and :func:`debit_category`,
each of which appends a :class:`LedgerTransaction` carrying the resulting
balance. Callers group those row changes inside :func:`unit_of_work`, which
commits once at the end; if anything fails the session is rolled back and no
partial credit survives.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterator, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, desc, select

from .exceptions import (
    AlreadyCompletedError,
    InsufficientCategoryBalanceError,
    NotFoundOrAccessDeniedError,
    StorageFailureError,
)
from .models import CategoryBalances, CategoryType, TransactionType
from .money import format_currency, require_positive, to_decimal
from .persistence import AllowanceCategory, CharitableCause, LedgerTransaction


@contextmanager
def unit_of_work(engine: Engine) -> Iterator[Session]:
    """Yield a session whose changes are committed together or not at all."""

    with Session(engine, expire_on_commit=False) as session:
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageFailureError(f"The change could not be saved: {exc.__class__.__name__}") from exc
        except BaseException:
            session.rollback()
            raise


def open_categories(session: Session, recipient_id: str, *, when: datetime) -> Dict[CategoryType, AllowanceCategory]:
    """Add the four zero-balance categories of a new recipient."""

    rows = {
        category: AllowanceCategory(
            recipient_id=recipient_id,
            category_type=category.value,
            balance=Decimal("0.00"),
            created_at=when,
            updated_at=when,
        )
        for category in CategoryType
    }
    session.add_all(rows.values())
    return rows


def load_categories(session: Session, recipient_id: str) -> Dict[CategoryType, AllowanceCategory]:
    rows = session.exec(select(AllowanceCategory).where(AllowanceCategory.recipient_id == recipient_id)).all()
    categories = {CategoryType(row.category_type): row for row in rows}
    if len(rows) != len(CategoryType) or len(categories) != len(CategoryType):
        raise StorageFailureError(
            f"Recipient '{recipient_id}' has {len(rows)} category rows; expected one per category."
        )
    return categories


def category_balances(session: Session, recipient_id: str) -> CategoryBalances:
    categories = load_categories(session, recipient_id)
    return CategoryBalances.from_mapping({category: row.balance for category, row in categories.items()})


def balances_for_many(session: Session, recipient_ids: List[str]) -> Dict[str, CategoryBalances]:
    if not recipient_ids:
        return {}
    rows = session.exec(select(AllowanceCategory).where(AllowanceCategory.recipient_id.in_(recipient_ids))).all()
    grouped: Dict[str, Dict[CategoryType, Decimal]] = {recipient_id: {} for recipient_id in recipient_ids}
    for row in rows:
        grouped[row.recipient_id][CategoryType(row.category_type)] = row.balance
    return {recipient_id: CategoryBalances.from_mapping(values) for recipient_id, values in grouped.items()}


def credit_category(
    session: Session,
    category: AllowanceCategory,
    amount: Decimal,
    transaction_type: TransactionType,
    *,
    when: datetime,
    transaction_date: Optional[date] = None,
    description: Optional[str] = None,
    distribution_id: Optional[str] = None,
) -> LedgerTransaction:
    value = to_decimal(amount)
    require_positive(value)
    category.balance = to_decimal(category.balance) + value
    return _log_transaction(
        session,
        category,
        value,
        transaction_type,
        when=when,
        transaction_date=transaction_date,
        description=description,
        distribution_id=distribution_id,
    )


def debit_category(
    session: Session,
    category: AllowanceCategory,
    amount: Decimal,
    transaction_type: TransactionType,
    *,
    when: datetime,
    description: Optional[str] = None,
) -> LedgerTransaction:
    value = to_decimal(amount)
    require_positive(value)
    _ensure_sufficient_funds(category, value)
    category.balance = to_decimal(category.balance) - value
    return _log_transaction(session, category, -value, transaction_type, when=when, description=description)


def complete_charitable_donation(
    session: Session,
    cause_id: str,
    recipient_id: str,
    donation_amount: Decimal,
    cause_name: str,
    *,
    when: datetime,
) -> LedgerTransaction:
    """Donate a cause's allocation out of the Give category.

    Debits Give, records the withdrawal and marks the cause complete as one
    set of row changes; the caller's unit of work commits them together.
    """

    cause = session.get(CharitableCause, cause_id)
    if cause is None or cause.recipient_id != recipient_id:
        raise NotFoundOrAccessDeniedError("Charitable cause not found or access denied.")
    if cause.is_completed:
        raise AlreadyCompletedError(f"'{cause.name}' has already been completed.")
    give = load_categories(session, recipient_id)[CategoryType.GIVE]
    transaction = debit_category(
        session,
        give,
        donation_amount,
        TransactionType.WITHDRAWAL,
        when=when,
        description=f"Donation to {cause_name}",
    )
    cause.is_completed = True
    cause.completed_at = when
    cause.updated_at = when
    session.add(cause)
    return transaction


def list_transactions(
    session: Session,
    recipient_id: str,
    *,
    category: Optional[CategoryType] = None,
    limit: int = 50,
) -> List[LedgerTransaction]:
    if limit < 0:
        raise ValueError("limit must not be negative")
    query = select(LedgerTransaction).where(LedgerTransaction.recipient_id == recipient_id)
    if category is not None:
        query = query.where(LedgerTransaction.category_type == CategoryType(category).value)
    query = query.order_by(desc(LedgerTransaction.transaction_date), desc(LedgerTransaction.created_at)).limit(limit)
    return list(session.exec(query).all())


def _log_transaction(
    session: Session,
    category: AllowanceCategory,
    amount: Decimal,
    transaction_type: TransactionType,
    *,
    when: datetime,
    transaction_date: Optional[date] = None,
    description: Optional[str] = None,
    distribution_id: Optional[str] = None,
) -> LedgerTransaction:
    category.updated_at = when
    session.add(category)
    transaction = LedgerTransaction(
        recipient_id=category.recipient_id,
        category_type=category.category_type,
        transaction_type=transaction_type.value,
        amount=amount,
        balance_after=category.balance,
        description=description,
        transaction_date=transaction_date or when.date(),
        distribution_id=distribution_id,
        created_at=when,
    )
    session.add(transaction)
    return transaction


def _ensure_sufficient_funds(category: AllowanceCategory, amount: Decimal) -> None:
    if to_decimal(category.balance) < amount:
        raise InsufficientCategoryBalanceError(
            f"Insufficient funds in {category.category_type.title()} category for {format_currency(amount)}."
        )
