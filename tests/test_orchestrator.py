"""
Integration tests for LedgerSession.

Storage is in-memory; activity events are captured instead of logged.
"""

import io
import json

import pytest
from decimal import Decimal

from conftest import expense_fields
from finledger.activity import ActivityLogger
from finledger.errors import CategoryInUseError, NotFoundError, ValidationError
from finledger.models import ActivityEventType, ChatSender, Theme
from finledger.orchestrator import LedgerSession, create_session
from finledger.services.storage import (
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    StorageError,
)


class RecordingActivityLogger(ActivityLogger):
    """Keeps events in a list."""

    def __init__(self, account_id=None):
        super().__init__(account_id)
        self.events = []

    def log(self, event):
        self.events.append(event)

    def types(self):
        return [e.event_type for e in self.events]


class FailingStorage(InMemoryLedgerStorage):
    """Loads fine, never saves."""

    def save_ledger(self, account_id, payload):
        raise StorageError("backend unavailable")


@pytest.fixture
def activity():
    return RecordingActivityLogger("alice")


@pytest.fixture
def session(storage, activity):
    return LedgerSession.open("alice", storage, activity)


def _stored(storage, account_id="alice"):
    return json.loads(storage.raw_blob(account_id))


class TestOpen:
    """Tests for opening a session."""

    def test_new_account_gets_defaults(self, session, activity):
        assert session.transactions == []
        assert len(session.categories) == 5
        assert activity.types() == [ActivityEventType.LEDGER_CREATED]

    def test_existing_blob_is_loaded(self, storage):
        storage.save_ledger("alice", {
            "transactions": [{
                "id": "t1", "description": "Pay", "amount": "10",
                "date": "2024-05-01", "type": "INCOME", "category": "Salary",
            }],
            "categories": [{"id": "cat4", "name": "Salary"}],
        })
        activity = RecordingActivityLogger("alice")
        session = LedgerSession.open("alice", storage, activity)

        assert [t.id for t in session.transactions] == ["t1"]
        assert session.categories[0].icon == "currency_dollar"
        assert activity.types() == [ActivityEventType.LEDGER_LOADED]

    def test_malformed_blob_raises(self, storage):
        storage.save_ledger("alice", {"transactions": [{"id": "t1"}]})
        activity = RecordingActivityLogger("alice")
        with pytest.raises(ValidationError):
            LedgerSession.open("alice", storage, activity)
        assert activity.types() == [ActivityEventType.VALIDATION_FAILED]

    def test_open_does_not_save(self, storage, session):
        assert storage.save_count == 0

    def test_drifted_blob_stays_editable(self, storage):
        """Test that a stored parent-sum mismatch does not block later edits."""
        storage.save_ledger("alice", {"transactions": [
            {"id": "p", "description": "Market", "amount": "100", "date": "2024-05-01",
             "type": "EXPENSE", "category": "Groceries"},
            {"id": "c", "description": "Bread", "amount": "30", "date": "2024-05-01",
             "type": "EXPENSE", "category": "Groceries", "parentId": "p"},
        ]})
        session = LedgerSession.open("alice", storage, RecordingActivityLogger("alice"))

        assert session.transactions[0].amount == Decimal("30")
        session.add_category("Pets")
        session.add_transaction({
            "description": "Salary", "amount": "1000", "date": "2024-05-02",
            "type": "INCOME", "category": "Salary",
        })
        assert len(session.transactions) == 3
        assert session.dashboard().totals.total_expense == Decimal("30")

    def test_nested_blob_stays_editable(self, storage):
        storage.save_ledger("alice", {"transactions": [
            {"id": "p", "description": "Trip", "amount": "5", "date": "2024-05-01",
             "type": "EXPENSE", "category": "Leisure"},
            {"id": "c", "description": "Hotel", "amount": "5", "date": "2024-05-01",
             "type": "EXPENSE", "category": "Leisure", "parentId": "p"},
            {"id": "gc", "description": "Breakfast", "amount": "2", "date": "2024-05-01",
             "type": "EXPENSE", "category": "Leisure", "parentId": "c"},
        ]})
        session = LedgerSession.open("alice", storage, RecordingActivityLogger("alice"))

        session.add_category("Pets")
        roots = session.tree()
        assert [r.id for r in roots] == ["p"]
        assert {c.id for c in roots[0].sub_items} == {"c", "gc"}
        assert session.dashboard().totals.total_expense == Decimal("7")


class TestTransactionFlow:
    """Tests for transaction mutations through the session."""

    def test_add_persists_whole_blob(self, session, storage):
        created = session.add_transaction(expense_fields("12"))
        blob = _stored(storage)
        assert [t["id"] for t in blob["transactions"]] == [created.id]
        assert len(blob["categories"]) == 5

    def test_scenario(self, session):
        session.add_transaction({
            "description": "Salary", "amount": "1000", "date": "2024-05-01",
            "type": "INCOME", "category": "Salary",
        })
        parent = session.add_transaction(expense_fields("0", description="Supermarket"))
        bread = session.add_transaction(expense_fields("30"), parent_id=parent.id)
        session.add_transaction(expense_fields("45"), parent_id=parent.id)

        totals = session.dashboard().totals
        assert (totals.total_income, totals.total_expense, totals.net_balance) == (
            Decimal("1000"), Decimal("75"), Decimal("925"),
        )

        removed = session.delete_transaction(bread.id)
        assert removed == [bread.id]
        assert session.dashboard("2024-05").totals.total_expense == Decimal("45")

    def test_sub_item_logs_rederivation(self, session, activity):
        parent = session.add_transaction(expense_fields("0"))
        session.add_transaction(expense_fields("7"), parent_id=parent.id)
        assert ActivityEventType.PARENT_REDERIVED in activity.types()

    def test_edit(self, session):
        created = session.add_transaction(expense_fields("12"))
        updated = session.edit_transaction(created.id, {"amount": "15.5"})
        assert updated.amount == Decimal("15.5")
        assert session.transactions[0].amount == Decimal("15.5")

    def test_delete_parent_returns_all_removed(self, session):
        parent = session.add_transaction(expense_fields("0"))
        a = session.add_transaction(expense_fields("1"), parent_id=parent.id)
        b = session.add_transaction(expense_fields("2"), parent_id=parent.id)
        removed = session.delete_transaction(parent.id)
        assert set(removed) == {parent.id, a.id, b.id}
        assert session.transactions == []

    def test_invalid_input_changes_nothing(self, session, storage, activity):
        with pytest.raises(ValidationError):
            session.add_transaction(expense_fields("-1"))
        assert session.transactions == []
        assert storage.save_count == 0
        assert activity.types()[-1] == ActivityEventType.VALIDATION_FAILED

    def test_unknown_id(self, session):
        with pytest.raises(NotFoundError):
            session.delete_transaction("nope")


class TestCategoryFlow:
    """Tests for category operations through the session."""

    def test_add_update_delete(self, session):
        pets = session.add_category("Pets")
        assert pets.icon == "question_mark_circle"

        renamed = session.update_category(pets.id, name="Animals", icon="paw")
        assert renamed.name == "Animals"

        session.delete_category(pets.id)
        assert all(c.id != pets.id for c in session.categories)

    def test_delete_in_use_is_refused(self, session, activity):
        session.add_transaction(expense_fields("5"))
        with pytest.raises(CategoryInUseError):
            session.delete_category("cat1")
        assert ActivityEventType.CATEGORY_DELETE_REFUSED in activity.types()
        assert any(c.id == "cat1" for c in session.categories)

    def test_rename_does_not_cascade(self, session):
        """Test that transactions keep the old category name."""
        created = session.add_transaction(expense_fields("5"))
        session.update_category("cat1", name="Food")
        assert session.transactions[0].category == "Groceries"
        assert session.transactions[0].id == created.id

    def test_deleted_default_stays_deleted(self, storage, session):
        session.delete_category("cat5")
        reopened = LedgerSession.open("alice", storage, RecordingActivityLogger("alice"))
        assert all(c.name != "Leisure" for c in reopened.categories)


class TestPreferences:
    """Tests for currency, theme and chat history."""

    def test_set_currency(self, session, storage):
        session.set_currency("usd")
        assert session.ledger.currency == "USD"
        assert _stored(storage)["currency"] == "USD"

    def test_rejects_bad_currency(self, session):
        with pytest.raises(ValidationError):
            session.set_currency("dollars")
        assert session.ledger.currency == "BRL"

    def test_set_theme(self, session):
        session.set_theme("minimalist")
        assert session.ledger.theme == Theme.MINIMALIST

    def test_rejects_unknown_theme(self, session):
        with pytest.raises(ValidationError):
            session.set_theme("neon")

    def test_chat_history_persisted_camel_case(self, session, storage):
        session.append_chat_message(ChatSender.USER, "How much did I spend?")
        session.append_chat_message("finassist", "75.00 in May.")
        history = _stored(storage)["chatHistory"]
        assert [m["sender"] for m in history] == ["user", "finassist"]

    def test_rejects_empty_chat_message(self, session):
        with pytest.raises(ValidationError):
            session.append_chat_message(ChatSender.USER, "   ")


class TestPersistenceFailure:
    """Saving is fire-and-forget."""

    def test_failed_save_keeps_memory_state(self):
        activity = RecordingActivityLogger("alice")
        session = LedgerSession.open("alice", FailingStorage(), activity)

        created = session.add_transaction(expense_fields("9"))

        assert [t.id for t in session.transactions] == [created.id]
        assert ActivityEventType.SAVE_FAILED in activity.types()
        assert ActivityEventType.LEDGER_SAVED not in activity.types()


class TestReads:
    """Tests for the read-side views."""

    def test_tree_and_months(self, session):
        parent = session.add_transaction(expense_fields("0"))
        session.add_transaction(expense_fields("3", month=6), parent_id=parent.id)
        roots = session.tree()
        assert len(roots) == 1
        assert len(roots[0].sub_items) == 1
        assert session.available_months() == ["2024-06", "2024-05"]

    def test_report(self, session):
        session.add_transaction(expense_fields("3"))
        report = session.report("2024-05")
        assert report.category_breakdown[0].name == "Groceries"

    def test_export_csv(self, session, activity):
        session.add_transaction(expense_fields("3"))
        stream = io.StringIO()
        assert session.export_csv(stream) == 1
        assert "-3.00" in stream.getvalue()
        assert activity.types()[-1] == ActivityEventType.EXPORT_GENERATED

    def test_export_filename_uses_prefix(self, session):
        assert session.export_filename().startswith("transactions_")

    def test_assistant_snapshot_is_read_only_copy(self, session):
        session.add_transaction(expense_fields("3"))
        snapshot = session.assistant_snapshot()
        assert snapshot.account_id == "alice"
        assert snapshot.currency == "BRL"
        assert len(snapshot.transactions) == 1
        assert isinstance(snapshot.transactions, tuple)


class TestCreateSession:
    """Tests for the factory."""

    def test_uses_given_storage(self, storage):
        session = create_session("alice", storage, RecordingActivityLogger("alice"))
        session.add_transaction(expense_fields("1"))
        assert storage.save_count == 1

    def test_defaults_to_json_files(self, tmp_path, monkeypatch):
        from finledger.config import get_settings

        monkeypatch.setenv("FINLEDGER_DATA_DIR", str(tmp_path))
        get_settings.cache_clear()
        try:
            session = create_session("alice", activity_logger=RecordingActivityLogger("alice"))
            session.add_transaction(expense_fields("1"))
            assert (tmp_path / "alice.json").exists()
            assert isinstance(session._storage, JsonFileLedgerStorage)
        finally:
            get_settings.cache_clear()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
