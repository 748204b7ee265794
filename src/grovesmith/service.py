"""High level service for one signed-in manager's recipients."""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, List, Optional

from sqlalchemy.engine import Engine

from . import causes, distribution, ledger, recipients
from .exceptions import GrovesmithError, NotAuthenticatedError, StorageFailureError
from .models import (
    CategoryAmounts,
    CategoryBalances,
    CategoryType,
    CauseUpdate,
    GiveBalance,
    RecipientSummary,
    UndistributedSummary,
)
from .money import AmountLike
from .ops import StructuredLogger
from .persistence import CharitableCause, Distribution, LedgerTransaction, Manager, Recipient


class Grovesmith:
    """Run allowance, cause and recipient operations on behalf of a manager.

    Every read is filtered by the manager id of the signed-in principal. Every
    write happens inside a single unit of work, so a failure leaves nothing
    half applied; failed writes are reported and never retried.
    """

    __slots__ = ("_engine", "_principal_id", "_clock", "_logger")

    def __init__(
        self,
        engine: Engine,
        principal_id: Optional[str],
        *,
        clock: Callable[[], datetime] = datetime.utcnow,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self._engine = engine
        self._principal_id = principal_id
        self._clock = clock
        self._logger = logger or StructuredLogger()

    @property
    def logger(self) -> StructuredLogger:
        return self._logger

    @property
    def manager_id(self) -> str:
        if not self._principal_id:
            raise NotAuthenticatedError("Not authenticated.")
        return self._principal_id

    def _write(self, event: str, action: Callable, **fields: object):
        manager_id = self.manager_id
        try:
            with ledger.unit_of_work(self._engine) as session:
                result = action(session, manager_id)
        except StorageFailureError as exc:
            self._logger.log("storage_failure", operation=event, manager=manager_id, error=str(exc), **fields)
            raise
        self._logger.log(event, manager=manager_id, **fields)
        return result

    def _read(self, action: Callable):
        manager_id = self.manager_id
        with ledger.unit_of_work(self._engine) as session:
            return action(session, manager_id)

    # ------------------------------------------------------------------
    # Manager profile
    # ------------------------------------------------------------------
    def ensure_manager_profile(self, *, email: Optional[str] = None, full_name: Optional[str] = None) -> Optional[Manager]:
        """Create the manager row for the principal if it does not exist yet.

        Safe to call on every sign-in. A failure is logged and swallowed since
        the next call will try again.
        """

        manager_id = self.manager_id
        try:
            with ledger.unit_of_work(self._engine) as session:
                created = recipients.ensure_manager(
                    session, manager_id, email=email, full_name=full_name, when=self._clock()
                )
        except GrovesmithError as exc:
            self._logger.log("manager_profile_failed", manager=manager_id, error=str(exc))
            return None
        if created is not None:
            self._logger.log("manager_profile_created", manager=manager_id)
        return created

    # ------------------------------------------------------------------
    # Recipients
    # ------------------------------------------------------------------
    def create_recipient(self, name: str, allowance_amount: AmountLike) -> Recipient:
        recipient = self._write(
            "recipient_created",
            lambda session, manager_id: recipients.create_recipient(
                session, manager_id, name, allowance_amount, when=self._clock()
            ),
        )
        return recipient

    def list_recipients(self, *, include_archived: bool = False) -> List[RecipientSummary]:
        return self._read(
            lambda session, manager_id: recipients.list_recipients(
                session, manager_id, include_archived=include_archived
            )
        )

    def get_recipient(self, recipient_id: str) -> RecipientSummary:
        def load(session, manager_id):
            recipient = recipients.get_owned_recipient(session, manager_id, recipient_id)
            return recipients.summarize(session, [recipient])[0]

        return self._read(load)

    def category_balances(self, recipient_id: str) -> CategoryBalances:
        def load(session, manager_id):
            recipient = recipients.get_owned_recipient(session, manager_id, recipient_id, active_only=False)
            return ledger.category_balances(session, recipient.id)

        return self._read(load)

    def update_profile(
        self, recipient_id: str, name: str, allowance_amount: AmountLike, avatar_url: Optional[str] = None
    ) -> Recipient:
        return self._write(
            "profile_updated",
            lambda session, manager_id: recipients.update_profile(
                session, manager_id, recipient_id, name, allowance_amount, avatar_url, when=self._clock()
            ),
            recipient=recipient_id,
        )

    def archive_recipient(self, recipient_id: str) -> Recipient:
        return self._write(
            "recipient_archived",
            lambda session, manager_id: recipients.set_archived(
                session, manager_id, recipient_id, True, when=self._clock()
            ),
            recipient=recipient_id,
        )

    def restore_recipient(self, recipient_id: str) -> Recipient:
        return self._write(
            "recipient_restored",
            lambda session, manager_id: recipients.set_archived(
                session, manager_id, recipient_id, False, when=self._clock()
            ),
            recipient=recipient_id,
        )

    def reset_account(self, recipient_id: str) -> Recipient:
        return self._write(
            "account_reset",
            lambda session, manager_id: recipients.reset_account(session, manager_id, recipient_id, when=self._clock()),
            recipient=recipient_id,
        )

    # ------------------------------------------------------------------
    # Distributions & ledger
    # ------------------------------------------------------------------
    def compute_undistributed(self, recipient_id: str) -> UndistributedSummary:
        return self._read(
            lambda session, manager_id: distribution.compute_undistributed(
                session, manager_id, recipient_id, now=self._clock()
            )
        )

    def distribute(
        self,
        recipient_id: str,
        amounts: CategoryAmounts,
        *,
        distribution_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> Distribution:
        now = self._clock()
        return self._write(
            "distribution_recorded",
            lambda session, manager_id: distribution.distribute(
                session,
                manager_id,
                recipient_id,
                amounts,
                distribution_date=distribution_date or now.date(),
                notes=notes,
                now=now,
            ),
            recipient=recipient_id,
            total=amounts.total,
        )

    def list_distributions(self, recipient_id: str) -> List[Distribution]:
        return self._read(
            lambda session, manager_id: distribution.list_distributions(session, manager_id, recipient_id)
        )

    def list_transactions(
        self, recipient_id: str, *, category: Optional[CategoryType] = None, limit: int = 50
    ) -> List[LedgerTransaction]:
        def load(session, manager_id):
            recipient = recipients.get_owned_recipient(session, manager_id, recipient_id, active_only=False)
            return ledger.list_transactions(session, recipient.id, category=category, limit=limit)

        return self._read(load)

    # ------------------------------------------------------------------
    # Charitable causes
    # ------------------------------------------------------------------
    def list_causes(self, recipient_id: str) -> List[CharitableCause]:
        return self._read(lambda session, manager_id: causes.list_causes(session, manager_id, recipient_id))

    def get_give_balance(self, recipient_id: str) -> GiveBalance:
        return self._read(lambda session, manager_id: causes.get_give_balance(session, manager_id, recipient_id))

    def create_cause(
        self,
        recipient_id: str,
        name: str,
        goal_amount: AmountLike,
        *,
        description: Optional[str] = None,
        due_date: Optional[date] = None,
    ) -> CharitableCause:
        return self._write(
            "cause_created",
            lambda session, manager_id: causes.create_cause(
                session,
                manager_id,
                recipient_id,
                name,
                goal_amount,
                description=description,
                due_date=due_date,
                when=self._clock(),
            ),
            recipient=recipient_id,
        )

    def allocate(self, cause_id: str, amount: AmountLike) -> CharitableCause:
        return self._write(
            "cause_allocated",
            lambda session, manager_id: causes.allocate(session, manager_id, cause_id, amount, when=self._clock()),
            cause=cause_id,
            amount=str(amount),
        )

    def mark_complete(self, cause_id: str) -> LedgerTransaction:
        return self._write(
            "donation_completed",
            lambda session, manager_id: causes.mark_complete(session, manager_id, cause_id, when=self._clock()),
            cause=cause_id,
        )

    def delete_cause(self, cause_id: str) -> CharitableCause:
        return self._write(
            "cause_deleted",
            lambda session, manager_id: causes.delete_cause(session, manager_id, cause_id),
            cause=cause_id,
        )

    def update_cause(self, cause_id: str, changes: CauseUpdate) -> CharitableCause:
        return self._write(
            "cause_updated",
            lambda session, manager_id: causes.update_cause(session, manager_id, cause_id, changes, when=self._clock()),
            cause=cause_id,
        )


__all__ = ["Grovesmith"]
