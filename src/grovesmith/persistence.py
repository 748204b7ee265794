"""Persistence and SQLModel definitions for Grovesmith."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import uuid4

from sqlalchemy import UniqueConstraint
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, SQLModel, create_engine

from .config import DATABASE_URL


def _new_id() -> str:
    return str(uuid4())


# ---------------------------------------------------------------------------
# Database models
# ---------------------------------------------------------------------------
class AuthUser(SQLModel, table=True):
    __tablename__ = "auth_users"

    id: str = Field(default_factory=_new_id, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    full_name: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Manager(SQLModel, table=True):
    __tablename__ = "managers"

    id: str = Field(primary_key=True)  # auth user id
    email: Optional[str] = None
    full_name: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Recipient(SQLModel, table=True):
    __tablename__ = "recipients"

    id: str = Field(default_factory=_new_id, primary_key=True)
    manager_id: str = Field(index=True)
    name: str
    allowance_amount: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    avatar_url: Optional[str] = None
    is_active: bool = True
    is_archived: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class AllowanceCategory(SQLModel, table=True):
    __tablename__ = "allowance_categories"
    __table_args__ = (UniqueConstraint("recipient_id", "category_type"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    recipient_id: str = Field(index=True)
    category_type: str  # give|spend|save|invest
    balance: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Distribution(SQLModel, table=True):
    __tablename__ = "distributions"

    id: str = Field(default_factory=_new_id, primary_key=True)
    recipient_id: str = Field(index=True)
    manager_id: str = Field(index=True)
    distribution_date: date
    total_amount: Decimal = Field(max_digits=12, decimal_places=2)
    give_amount: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    spend_amount: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    save_amount: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    invest_amount: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class LedgerTransaction(SQLModel, table=True):
    __tablename__ = "transactions"

    id: str = Field(default_factory=_new_id, primary_key=True)
    recipient_id: str = Field(index=True)
    category_type: str  # give|spend|save|invest
    transaction_type: str  # distribution|withdrawal|dividend|bonus
    amount: Decimal = Field(max_digits=12, decimal_places=2)  # signed
    balance_after: Decimal = Field(max_digits=12, decimal_places=2)
    description: Optional[str] = None
    transaction_date: date
    distribution_id: Optional[str] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class CharitableCause(SQLModel, table=True):
    __tablename__ = "charitable_causes"

    id: str = Field(default_factory=_new_id, primary_key=True)
    recipient_id: str = Field(index=True)
    name: str
    description: Optional[str] = None
    goal_amount: Decimal = Field(max_digits=12, decimal_places=2)
    current_amount: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    due_date: Optional[date] = None
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


# ---------------------------------------------------------------------------
# Engine & schema
# ---------------------------------------------------------------------------
def build_engine(url: str = DATABASE_URL) -> Engine:
    """Create an engine for ``url``; in-memory SQLite shares one connection."""

    kwargs: Dict[str, Any] = {"echo": False}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in {"sqlite://", "sqlite:///:memory:"}:
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def create_db_and_tables(target: Optional[Engine] = None) -> None:
    SQLModel.metadata.create_all(target or engine)


engine = build_engine()


__all__ = [
    "engine",
    "AuthUser",
    "Manager",
    "Recipient",
    "AllowanceCategory",
    "Distribution",
    "LedgerTransaction",
    "CharitableCause",
    "build_engine",
    "create_db_and_tables",
]
