"""Tests for expenses and incomes."""

from datetime import date
from decimal import Decimal

import pytest

from bizledger.domain.cashbook import CashbookService
from bizledger.domain.entities import AccountType, RefType
from bizledger.domain.errors import ValidationError


def test_expense_posts_against_cash(expense_service, journal_service, chart):
    """Test that an expense debits Operating Expenses and credits Cash."""
    expense = expense_service.create(
        {"amount": "120.00", "date": date(2024, 3, 5), "expense_type": "Rent", "description": "March rent"}
    )

    entries = journal_service.entries_for_reference(RefType.EXPENSE, expense.id)

    assert [(e.debit_account_id, e.credit_account_id, e.amount) for e in entries] == [
        (chart["Operating Expenses"].id, chart["Cash"].id, Decimal("120.00"))
    ]
    assert entries[0].description == "March rent"


def test_expense_to_custom_account(expense_service, account_service, journal_service, chart):
    rent = account_service.create({"name": "Rent", "account_type": AccountType.EXPENSE})

    expense = expense_service.create({"amount": "80", "date": date(2024, 3, 5), "account_id": rent.id})

    entries = journal_service.entries_for_reference(RefType.EXPENSE, expense.id)
    assert entries[0].debit_account_id == rent.id


def test_expense_rejects_non_expense_account(expense_service, chart):
    """Test that expenses can only be booked to expense accounts."""
    with pytest.raises(ValidationError, match="expected Expense"):
        expense_service.create({"amount": "80", "date": date(2024, 3, 5), "account_id": chart["Cash"].id})

    assert expense_service.count() == 0


def test_expense_rejects_non_positive_amount(expense_service, chart):
    with pytest.raises(ValidationError, match="amount"):
        expense_service.create({"amount": "0", "date": date(2024, 3, 5)})


def test_income_posts_to_other_income(income_service, journal_service, chart):
    income = income_service.create({"amount": "15.25", "date": date(2024, 3, 6), "income_type": "Interest"})

    entries = journal_service.entries_for_reference(RefType.INCOME, income.id)

    assert [(e.debit_account_id, e.credit_account_id) for e in entries] == [
        (chart["Cash"].id, chart["Other Income"].id)
    ]
    assert entries[0].description == "Interest"


def test_update_reposts(expense_service, journal_service, chart):
    """Test that changing the amount replaces the journal entry."""
    expense = expense_service.create({"amount": "50", "date": date(2024, 3, 5)})

    updated = expense_service.update(expense.id, {"amount": "65.00"})

    assert updated.amount == Decimal("65.00")
    entries = journal_service.entries_for_reference(RefType.EXPENSE, expense.id)
    assert [e.amount for e in entries] == [Decimal("65.00")]


def test_delete_and_restore(income_service, journal_service, chart):
    income = income_service.create({"amount": "10", "date": date(2024, 3, 6)})

    income_service.delete(income.id)
    assert journal_service.entries_for_reference(RefType.INCOME, income.id) == []

    income_service.restore(income.id)
    assert len(journal_service.entries_for_reference(RefType.INCOME, income.id)) == 1


def test_hard_delete(expense_service, journal_service, chart):
    expense = expense_service.create({"amount": "10", "date": date(2024, 3, 6)})

    expense_service.hard_delete(expense.id)

    assert expense_service.find_by_id(expense.id, with_deleted=True) is None
    assert journal_service.entries_for_reference(RefType.EXPENSE, expense.id, with_deleted=True) == []


def test_totals_and_breakdown(expense_service, chart):
    """Test period totals and the per-type breakdown."""
    expense_service.create({"amount": "100", "date": date(2024, 3, 1), "expense_type": "Rent"})
    expense_service.create({"amount": "30", "date": date(2024, 3, 2), "expense_type": "Utilities"})
    expense_service.create({"amount": "20", "date": date(2024, 3, 3), "expense_type": "Utilities"})
    expense_service.create({"amount": "5", "date": date(2024, 3, 4)})
    expense_service.create({"amount": "999", "date": date(2024, 4, 1), "expense_type": "Rent"})

    start, end = date(2024, 3, 1), date(2024, 3, 31)

    assert expense_service.total_by_date_range(start, end) == Decimal("155.00")
    breakdown = expense_service.breakdown_by_type(start, end)
    assert list(breakdown.items()) == [
        ("Rent", Decimal("100.00")),
        ("Utilities", Decimal("50.00")),
        ("Other", Decimal("5.00")),
    ]


def test_update_clears_account_override(expense_service, account_service, journal_service, chart):
    """Test that dropping the account override reposts to Operating Expenses."""
    rent = account_service.create({"name": "Rent", "account_type": AccountType.EXPENSE})
    expense = expense_service.create({"amount": "80", "date": date(2024, 3, 5), "account_id": rent.id})

    updated = expense_service.update(expense.id, {"account_id": None})

    assert updated.account_id is None
    [entry] = journal_service.entries_for_reference(RefType.EXPENSE, expense.id)
    assert entry.debit_account_id == chart["Operating Expenses"].id


def test_update_cannot_clear_amount(expense_service, chart):
    expense = expense_service.create({"amount": "50", "date": date(2024, 3, 5)})

    with pytest.raises(ValidationError, match="amount cannot be cleared"):
        expense_service.update(expense.id, {"amount": None})


def test_cashbook_service_is_abstract(temp_db):
    with pytest.raises(TypeError):
        CashbookService(temp_db)
