"""Shared fixtures for the Finledger test suite."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest

from finledger.models import Transaction, TransactionType
from finledger.orchestrator import LedgerSession
from finledger.services.storage import InMemoryLedgerStorage


def make_transaction(
    id: str,
    amount: str = "10.00",
    type: TransactionType = TransactionType.EXPENSE,
    category: str = "Groceries",
    date: Optional[datetime] = None,
    parent_id: Optional[str] = None,
    description: Optional[str] = None,
) -> Transaction:
    """Build a Transaction with sensible defaults for tests."""
    return Transaction(
        id=id,
        description=description or f"Record {id}",
        amount=Decimal(amount),
        date=date or datetime(2024, 5, 10, tzinfo=timezone.utc),
        type=type,
        category=category,
        parent_id=parent_id,
    )


def expense_fields(amount: str = "10.00", day: int = 10, month: int = 5, **overrides) -> dict:
    """Field mapping as a form would submit it."""
    fields = {
        "description": "Weekly shop",
        "amount": amount,
        "date": f"2024-{month:02d}-{day:02d}",
        "type": "EXPENSE",
        "category": "Groceries",
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def txn():
    """Factory fixture: `txn("t1", amount="5")`."""
    return make_transaction


@pytest.fixture
def scenario_records():
    """
    1000 income plus a Groceries parent holding two sub-items (30 and 45).

    Built directly, so the parent already carries the derived 75.
    """
    return [
        make_transaction(
            "salary", "1000", TransactionType.INCOME, "Salary",
            date=datetime(2024, 5, 1, tzinfo=timezone.utc),
        ),
        make_transaction("shop", "75", date=datetime(2024, 5, 10, tzinfo=timezone.utc)),
        make_transaction(
            "bread", "30", parent_id="shop",
            date=datetime(2024, 5, 10, 9, tzinfo=timezone.utc),
        ),
        make_transaction(
            "cheese", "45", parent_id="shop",
            date=datetime(2024, 5, 10, 10, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def storage():
    return InMemoryLedgerStorage()


@pytest.fixture
def session(storage):
    """A fresh session for account `alice` backed by in-memory storage."""
    return LedgerSession.open("alice", storage)
