"""Tests for journal postings."""

from datetime import date
from decimal import Decimal

import pytest

from bizledger.domain.entities import RefType
from bizledger.domain.errors import NotFoundError, ValidationError
from bizledger.domain.journal import PostingLine


def test_post_balanced_group(journal_service, chart):
    """Test posting a group of lines under one reference."""
    entries = journal_service.post(
        date(2024, 2, 1),
        RefType.MANUAL,
        7,
        [
            PostingLine(chart["Cash"].id, chart["Owner's Equity"].id, Decimal("500")),
            PostingLine(chart["Inventory"].id, chart["Cash"].id, Decimal("120.456")),
        ],
        transaction_reference="OPEN-1",
    )

    assert len(entries) == 2
    assert entries[1].amount == Decimal("120.46")
    assert all(e.ref_id == 7 and e.transaction_reference == "OPEN-1" for e in entries)
    assert [e.id for e in journal_service.entries_for_reference(RefType.MANUAL, 7)] == [e.id for e in entries]


def test_post_rejects_empty_group(journal_service, chart):
    with pytest.raises(ValidationError, match="at least one line"):
        journal_service.post(date(2024, 2, 1), RefType.MANUAL, None, [])


def test_post_rejects_same_account(journal_service, chart):
    """Test that a line cannot debit and credit the same account."""
    with pytest.raises(ValidationError, match="must differ"):
        journal_service.post(
            date(2024, 2, 1), RefType.MANUAL, None, [PostingLine(chart["Cash"].id, chart["Cash"].id, Decimal("1"))]
        )


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
def test_post_rejects_non_positive_amount(journal_service, chart, amount):
    with pytest.raises(ValidationError, match="must be positive"):
        journal_service.post(
            date(2024, 2, 1),
            RefType.MANUAL,
            None,
            [PostingLine(chart["Cash"].id, chart["Owner's Equity"].id, amount)],
        )


def test_post_rejects_missing_account(journal_service, chart):
    with pytest.raises(NotFoundError, match="Account 999 not found"):
        journal_service.post(
            date(2024, 2, 1), RefType.MANUAL, None, [PostingLine(chart["Cash"].id, 999, Decimal("1"))]
        )


def test_post_rejects_inactive_account(journal_service, account_service, chart):
    """Test that deactivated accounts cannot receive postings."""
    account_service.deactivate(chart["Other Income"].id)

    with pytest.raises(ValidationError, match="inactive account 'Other Income'"):
        journal_service.post(
            date(2024, 2, 1),
            RefType.MANUAL,
            None,
            [PostingLine(chart["Cash"].id, chart["Other Income"].id, Decimal("1"))],
        )


def test_post_is_all_or_nothing(journal_service, chart):
    """Test that one bad line keeps the whole group from being written."""
    with pytest.raises(NotFoundError):
        journal_service.post(
            date(2024, 2, 1),
            RefType.MANUAL,
            3,
            [
                PostingLine(chart["Cash"].id, chart["Owner's Equity"].id, Decimal("10")),
                PostingLine(chart["Cash"].id, 999, Decimal("10")),
            ],
        )

    assert journal_service.entries_for_reference(RefType.MANUAL, 3) == []
    assert journal_service.count() == 0


def test_outer_transaction_rolls_back_postings(journal_service, temp_db, chart):
    """Test that postings inside a failed outer transaction are discarded."""
    with pytest.raises(RuntimeError):
        with temp_db.transaction():
            journal_service.post(
                date(2024, 2, 1),
                RefType.MANUAL,
                4,
                [PostingLine(chart["Cash"].id, chart["Owner's Equity"].id, Decimal("10"))],
            )
            raise RuntimeError("boom")

    assert journal_service.count() == 0


def test_create_journal_entry_validates_input(journal_service, chart):
    """Test the single manual entry path."""
    entry = journal_service.create(
        {
            "date": "2024-02-03",
            "debit_account_id": chart["Operating Expenses"].id,
            "credit_account_id": chart["Cash"].id,
            "amount": "42.50",
            "description": "Stationery",
        }
    )

    assert entry.ref_type == RefType.MANUAL
    assert entry.amount == Decimal("42.50")
    assert entry.date == date(2024, 2, 3)

    with pytest.raises(ValidationError, match="amount"):
        journal_service.create(
            {
                "date": "2024-02-03",
                "debit_account_id": chart["Operating Expenses"].id,
                "credit_account_id": chart["Cash"].id,
                "amount": "0",
            }
        )


def test_replace_postings(journal_service, chart):
    """Test that reposting a reference swaps its entries."""
    line = PostingLine(chart["Cash"].id, chart["Other Income"].id, Decimal("10"))
    journal_service.replace_postings(RefType.INCOME, 1, date(2024, 2, 1), [line])
    journal_service.replace_postings(
        RefType.INCOME, 1, date(2024, 2, 2), [PostingLine(chart["Cash"].id, chart["Other Income"].id, Decimal("15"))]
    )

    entries = journal_service.entries_for_reference(RefType.INCOME, 1)
    assert [e.amount for e in entries] == [Decimal("15.00")]
    assert entries[0].date == date(2024, 2, 2)


def test_void_and_restore_reference(journal_service, chart):
    """Test soft deleting and bringing back the entries of a reference."""
    line = PostingLine(chart["Cash"].id, chart["Other Income"].id, Decimal("10"))
    journal_service.post(date(2024, 2, 1), RefType.INCOME, 5, [line, line])

    assert journal_service.void_reference(RefType.INCOME, 5) == 2
    assert journal_service.entries_for_reference(RefType.INCOME, 5) == []
    assert len(journal_service.entries_for_reference(RefType.INCOME, 5, with_deleted=True)) == 2

    assert journal_service.restore_reference(RefType.INCOME, 5) == 2
    assert len(journal_service.entries_for_reference(RefType.INCOME, 5)) == 2


def test_list_entries_by_account_and_period(journal_service, chart):
    """Test date window and account filtering."""
    for day, debit in ((1, "Cash"), (10, "Inventory"), (20, "Cash")):
        journal_service.post(
            date(2024, 2, day),
            RefType.MANUAL,
            None,
            [PostingLine(chart[debit].id, chart["Owner's Equity"].id, Decimal("1"))],
        )

    entries = journal_service.list_entries(date(2024, 2, 5), date(2024, 2, 29), account_id=chart["Cash"].id)

    assert [e.date.day for e in entries] == [20]
    assert len(journal_service.list_entries(account_id=chart["Owner's Equity"].id)) == 3
