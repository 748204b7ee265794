from decimal import Decimal

import pytest
from sqlmodel import Session, select

from grovesmith.exceptions import NotFoundOrAccessDeniedError, ValidationError
from grovesmith.models import CategoryAmounts
from grovesmith.persistence import AllowanceCategory, Distribution, LedgerTransaction


def test_new_recipient_starts_with_four_empty_categories(bank, engine) -> None:
    recipient = bank.create_recipient("  Ava  ", "7.5")
    assert recipient.name == "Ava"
    assert recipient.allowance_amount == Decimal("7.50")

    with Session(engine) as session:
        rows = session.exec(select(AllowanceCategory).where(AllowanceCategory.recipient_id == recipient.id)).all()
    assert sorted(row.category_type for row in rows) == ["give", "invest", "save", "spend"]
    assert all(row.balance == Decimal("0.00") for row in rows)


def test_create_recipient_validation(bank) -> None:
    with pytest.raises(ValidationError):
        bank.create_recipient("   ", 5)
    with pytest.raises(ValidationError):
        bank.create_recipient("Ben", -1)
    assert bank.create_recipient("Free", 0).allowance_amount == Decimal("0.00")
    assert [summary.name for summary in bank.list_recipients()] == ["Free"]


def test_update_profile(bank) -> None:
    recipient = bank.create_recipient("Ava", 5)
    updated = bank.update_profile(recipient.id, "Ava Grace", "6.25", " https://example.com/a.png ")
    assert updated.name == "Ava Grace"
    assert updated.allowance_amount == Decimal("6.25")
    assert updated.avatar_url == "https://example.com/a.png"

    with pytest.raises(ValidationError):
        bank.update_profile(recipient.id, "Ava", 0)
    with pytest.raises(ValidationError):
        bank.update_profile(recipient.id, "", 5)
    assert bank.get_recipient(recipient.id).name == "Ava Grace"


def test_archive_hides_from_default_listing(bank) -> None:
    ava = bank.create_recipient("Ava", 5)
    bank.create_recipient("Ben", 5)

    bank.archive_recipient(ava.id)
    assert [summary.name for summary in bank.list_recipients()] == ["Ben"]
    listed = bank.list_recipients(include_archived=True)
    assert {summary.name: summary.is_archived for summary in listed} == {"Ava": True, "Ben": False}

    bank.restore_recipient(ava.id)
    assert len(bank.list_recipients()) == 2


def test_reset_account_clears_finances(bank, engine) -> None:
    recipient = bank.create_recipient("Ava", 10)
    bank.distribute(recipient.id, CategoryAmounts(give=20, spend=5, save=5))
    done = bank.create_cause(recipient.id, "Shelter", 5)
    bank.allocate(done.id, 5)
    bank.mark_complete(done.id)
    open_cause = bank.create_cause(recipient.id, "Library", 10)
    bank.allocate(open_cause.id, 8)

    bank.reset_account(recipient.id)

    assert bank.category_balances(recipient.id) == CategoryAmounts()
    assert bank.list_transactions(recipient.id) == []
    assert bank.list_distributions(recipient.id) == []
    causes = bank.list_causes(recipient.id)
    assert len(causes) == 2
    assert all(cause.current_amount == Decimal("0.00") for cause in causes)
    assert not any(cause.is_completed for cause in causes)
    assert bank.compute_undistributed(recipient.id).total_distributed == Decimal("0.00")
    assert bank.get_recipient(recipient.id).name == "Ava"

    with Session(engine) as session:
        assert session.exec(select(Distribution)).all() == []
        assert session.exec(select(LedgerTransaction)).all() == []


def test_reset_only_touches_the_given_recipient(bank) -> None:
    ava = bank.create_recipient("Ava", 10)
    ben = bank.create_recipient("Ben", 10)
    bank.distribute(ava.id, CategoryAmounts(save=3))
    bank.distribute(ben.id, CategoryAmounts(save=4))

    bank.reset_account(ava.id)
    assert bank.category_balances(ben.id).save == Decimal("4.00")
    assert len(bank.list_transactions(ben.id)) == 1


def test_recipients_are_scoped_to_their_manager(bank, other_bank) -> None:
    recipient = bank.create_recipient("Ava", 5)
    other_bank.create_recipient("Zed", 5)

    assert [summary.name for summary in other_bank.list_recipients()] == ["Zed"]
    for action in (
        lambda: other_bank.get_recipient(recipient.id),
        lambda: other_bank.update_profile(recipient.id, "Hacked", 1),
        lambda: other_bank.archive_recipient(recipient.id),
        lambda: other_bank.reset_account(recipient.id),
        lambda: other_bank.list_transactions(recipient.id),
    ):
        with pytest.raises(NotFoundOrAccessDeniedError):
            action()
    assert bank.get_recipient(recipient.id).name == "Ava"
