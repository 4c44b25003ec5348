"""
Main Orchestrator for Finledger

This module ties together the ledger core, storage and activity logging
for one account:
1. Open (load blob → normalize → snapshot)
2. Mutate (engine → verify invariants → swap snapshot → persist → log)
3. Read (tree, dashboard, reports, export, assistant view)

DESIGN DECISION: The session owns exactly one immutable snapshot.
- Every mutation produces a new LedgerData and swaps it in as a whole
- Validation and guard errors propagate before anything is swapped
- Persistence is fire-and-forget: a failed save is logged, and the
  in-memory snapshot stays authoritative

This is the "glue" that keeps every caller on the same invariant-preserving
path, so presentation code never edits the record list by hand.
"""

from collections.abc import Mapping
from typing import Any, Optional, TextIO, Union

from pydantic import ValidationError as PydanticValidationError

from finledger.activity import ActivityLogger
from finledger.config import Settings, get_settings
from finledger.errors import CategoryInUseError, ValidationError
from finledger.export import export_filename, project_rows, write_csv
from finledger.ledger import (
    build_tree,
    create_category,
    create_transaction,
    delete_category,
    delete_transaction,
    normalize_ledger,
    update_category,
    update_transaction,
    verify_invariants,
)
from finledger.models import (
    ActivityEventType,
    AssistantSnapshot,
    Category,
    ChatMessage,
    ChatSender,
    DashboardSummary,
    ExportRow,
    LedgerData,
    MutationResult,
    ReportSummary,
    Theme,
    Transaction,
)
from finledger.queries import (
    ALL_MONTHS,
    available_months,
    summarize_dashboard,
    summarize_report,
)
from finledger.services.storage import (
    JsonFileLedgerStorage,
    LedgerStorageInterface,
    StorageError,
)
from finledger.validation import issues_from_pydantic


class LedgerSession:
    """
    One loaded ledger and every operation on it.

    Flow for each mutation:
    1. Run the pure engine function on the current snapshot
    2. Verify the structural invariants (when enabled)
    3. Swap in the new snapshot
    4. Persist the whole blob (failures are logged, not raised)
    5. Log an activity event

    One mutator per session; the session is not thread-safe.
    """

    def __init__(
        self,
        account_id: str,
        storage: LedgerStorageInterface,
        activity_logger: Optional[ActivityLogger] = None,
        ledger: Optional[LedgerData] = None,
        settings: Optional[Settings] = None,
    ):
        self._account_id = account_id
        self._storage = storage
        self._settings = settings or get_settings()
        self._activity = activity_logger or ActivityLogger(account_id)
        self._ledger = ledger or normalize_ledger(None, self._settings.ledger)

    @classmethod
    def open(
        cls,
        account_id: str,
        storage: LedgerStorageInterface,
        activity_logger: Optional[ActivityLogger] = None,
        settings: Optional[Settings] = None,
    ) -> "LedgerSession":
        """
        Load and normalize the account's ledger.

        A missing blob yields a fresh ledger with the default categories.

        Raises:
            StorageError: The blob cannot be read or decoded
            ValidationError: A stored record is malformed
        """
        settings = settings or get_settings()
        activity_logger = activity_logger or ActivityLogger(account_id)

        raw = storage.load_ledger(account_id)
        try:
            ledger = normalize_ledger(raw, settings.ledger)
        except ValidationError as e:
            activity_logger.log_validation_failed("load", e.to_dicts())
            raise

        activity_logger.log_ledger_loaded(
            transaction_count=len(ledger.transactions),
            category_count=len(ledger.categories),
            created=raw is None,
        )
        return cls(account_id, storage, activity_logger, ledger, settings)

    # -------------------------------------------------------------------------
    # Snapshot access
    # -------------------------------------------------------------------------

    @property
    def account_id(self) -> str:
        return self._account_id

    @property
    def ledger(self) -> LedgerData:
        return self._ledger

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._ledger.transactions)

    @property
    def categories(self) -> list[Category]:
        return list(self._ledger.categories)

    # -------------------------------------------------------------------------
    # Commit path
    # -------------------------------------------------------------------------

    def _commit(self, ledger: LedgerData) -> None:
        if self._settings.ledger.verify_invariants:
            verify_invariants(ledger.transactions)

        self._ledger = ledger
        self._persist()

    def _persist(self) -> None:
        try:
            self._storage.save_ledger(self._account_id, self._ledger.to_blob())
        except StorageError as e:
            self._activity.log_save_failed(str(e))
            return
        self._activity.log_ledger_saved(len(self._ledger.transactions))

    def _apply(self, result: MutationResult) -> None:
        self._commit(self._ledger.model_copy(update={"transactions": result.records}))
        if result.rederived_parent_id is not None:
            parent = self._find(result.rederived_parent_id)
            if parent is not None:
                self._activity.log_parent_rederived(parent.id, str(parent.amount))

    def _find(self, transaction_id: str) -> Optional[Transaction]:
        for record in self._ledger.transactions:
            if record.id == transaction_id:
                return record
        return None

    def _revalidated(self, **changes: Any) -> LedgerData:
        """Copy of the snapshot with `changes`, run through model validation."""
        data = self._ledger.model_dump()
        data.update(changes)
        try:
            return LedgerData.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(issues_from_pydantic(e)) from e

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(
        self,
        fields: Mapping[str, Any],
        parent_id: Optional[str] = None,
    ) -> Transaction:
        """
        Create a transaction, or a sub-item when `parent_id` is given.

        Raises:
            ValidationError: Invalid fields or a nested sub-item
            NotFoundError: Unknown parent
        """
        try:
            result = create_transaction(self._ledger.transactions, fields, parent_id)
        except ValidationError as e:
            self._activity.log_validation_failed("add_transaction", e.to_dicts())
            raise

        self._apply(result)
        created = self._find(result.affected_id)
        self._activity.log_transaction_created(created.id, str(created.amount), parent_id)
        return created

    def edit_transaction(self, transaction_id: str, fields: Mapping[str, Any]) -> Transaction:
        """
        Update the editable fields of a transaction.

        Raises:
            ValidationError: The merged record is invalid
            NotFoundError: Unknown transaction
        """
        try:
            result = update_transaction(self._ledger.transactions, transaction_id, fields)
        except ValidationError as e:
            self._activity.log_validation_failed("edit_transaction", e.to_dicts())
            raise

        self._apply(result)
        updated = self._find(transaction_id)
        self._activity.log_transaction_updated(updated.id, str(updated.amount))
        return updated

    def delete_transaction(self, transaction_id: str) -> list[str]:
        """Delete a transaction and its sub-items; returns every removed ID."""
        result = delete_transaction(self._ledger.transactions, transaction_id)
        self._apply(result)
        self._activity.log_transaction_deleted(transaction_id, result.removed_ids)
        return list(result.removed_ids)

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def add_category(self, name: str, icon: Optional[str] = None) -> Category:
        try:
            categories, category = create_category(
                self._ledger.categories,
                name,
                icon,
                placeholder_icon=self._settings.ledger.placeholder_icon,
            )
        except ValidationError as e:
            self._activity.log_validation_failed("add_category", e.to_dicts())
            raise

        self._commit(self._ledger.model_copy(update={"categories": categories}))
        self._activity.log_category_change(
            ActivityEventType.CATEGORY_CREATED, category.id, category.name
        )
        return category

    def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Category:
        """
        Rename a category and/or change its icon.

        Transactions keep the old name; rename does not cascade.
        """
        try:
            categories, category = update_category(
                self._ledger.categories, category_id, name, icon
            )
        except ValidationError as e:
            self._activity.log_validation_failed("update_category", e.to_dicts())
            raise

        self._commit(self._ledger.model_copy(update={"categories": categories}))
        self._activity.log_category_change(
            ActivityEventType.CATEGORY_UPDATED, category.id, category.name
        )
        return category

    def delete_category(self, category_id: str) -> None:
        """
        Remove a category.

        Raises:
            CategoryInUseError: A transaction still names the category
            NotFoundError: Unknown category
        """
        try:
            categories = delete_category(
                self._ledger.categories, self._ledger.transactions, category_id
            )
        except CategoryInUseError as e:
            self._activity.log_category_delete_refused(
                category_id, e.category_name, e.usage_count
            )
            raise

        removed = next(c for c in self._ledger.categories if c.id == category_id)
        self._commit(self._ledger.model_copy(update={"categories": categories}))
        self._activity.log_category_change(
            ActivityEventType.CATEGORY_DELETED, removed.id, removed.name
        )

    # -------------------------------------------------------------------------
    # Preferences and chat
    # -------------------------------------------------------------------------

    def set_currency(self, currency: str) -> None:
        code = (currency or "").strip().upper()
        try:
            ledger = self._revalidated(currency=code)
        except ValidationError as e:
            self._activity.log_validation_failed("set_currency", e.to_dicts())
            raise
        self._commit(ledger)
        self._activity.log_preferences_updated({"currency": code})

    def set_theme(self, theme: Union[Theme, str]) -> None:
        try:
            ledger = self._revalidated(theme=theme)
        except ValidationError as e:
            self._activity.log_validation_failed("set_theme", e.to_dicts())
            raise
        self._commit(ledger)
        self._activity.log_preferences_updated({"theme": ledger.theme.value})

    def append_chat_message(self, sender: Union[ChatSender, str], text: str) -> ChatMessage:
        """Append one message to the stored assistant conversation."""
        try:
            message = ChatMessage(sender=sender, text=text)
        except PydanticValidationError as e:
            error = ValidationError(issues_from_pydantic(e, prefix="chat_history"))
            self._activity.log_validation_failed("append_chat_message", error.to_dicts())
            raise error from e

        history = [*self._ledger.chat_history, message]
        self._commit(self._ledger.model_copy(update={"chat_history": history}))
        return message

    # -------------------------------------------------------------------------
    # Reads (recomputed on every call)
    # -------------------------------------------------------------------------

    def tree(self) -> list[Transaction]:
        return build_tree(self._ledger.transactions)

    def available_months(self) -> list[str]:
        return available_months(self._ledger.transactions)

    def dashboard(self, month: str = ALL_MONTHS) -> DashboardSummary:
        return summarize_dashboard(self._ledger.transactions, month)

    def report(self, month: str = ALL_MONTHS) -> ReportSummary:
        return summarize_report(self._ledger.transactions, month)

    def export_rows(self) -> list[ExportRow]:
        return project_rows(self._ledger.transactions)

    def export_csv(self, stream: TextIO) -> int:
        """Write the CSV export to `stream`; returns the number of data rows."""
        count = write_csv(self.export_rows(), stream)
        self._activity.log_export_generated(count)
        return count

    def export_filename(self) -> str:
        return export_filename(self._settings.ledger.export_filename_prefix)

    def assistant_snapshot(self) -> AssistantSnapshot:
        """Read-only copy of what the conversational assistant may see."""
        return AssistantSnapshot(
            account_id=self._account_id,
            currency=self._ledger.currency,
            transactions=tuple(self._ledger.transactions),
            chat_history=tuple(self._ledger.chat_history),
        )


def create_session(
    account_id: str,
    storage: Optional[LedgerStorageInterface] = None,
    activity_logger: Optional[ActivityLogger] = None,
) -> LedgerSession:
    """
    Factory function to open a session for one account.

    Args:
        account_id: Active account identifier
        storage: Backend to use. Defaults to JSON files under the
            configured data directory.
        activity_logger: Defaults to a local structlog-backed logger

    Returns:
        An opened LedgerSession
    """
    storage = storage or JsonFileLedgerStorage()
    return LedgerSession.open(account_id, storage, activity_logger)
