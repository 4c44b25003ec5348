"""
Activity Models for Finledger

Every ledger mutation and storage round-trip is described by an ActivityEvent
and written to the structured log. Events are not persisted: there is no
audit trail, only operational logging.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Ledger lifecycle
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_CREATED = "ledger_created"
    LEDGER_SAVED = "ledger_saved"
    SAVE_FAILED = "save_failed"

    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    PARENT_REDERIVED = "parent_rederived"

    # Categories
    CATEGORY_CREATED = "category_created"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"
    CATEGORY_DELETE_REFUSED = "category_delete_refused"

    # Preferences
    PREFERENCES_UPDATED = "preferences_updated"

    # Errors and exports
    VALIDATION_FAILED = "validation_failed"
    EXPORT_GENERATED = "export_generated"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single logged activity."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    account_id: Optional[str] = Field(
        default=None,
        description="Ledger (account) the event belongs to"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'category', 'ledger')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "account_id": self.account_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.transaction_created(account_id, txn_id, parent_id)
        event = ActivityEventBuilder.save_failed(account_id, "disk full")
    """

    @staticmethod
    def ledger_loaded(
        account_id: str,
        transaction_count: int,
        category_count: int,
        created: bool,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=(
                ActivityEventType.LEDGER_CREATED
                if created
                else ActivityEventType.LEDGER_LOADED
            ),
            account_id=account_id,
            entity_type="ledger",
            description=(
                "New ledger initialized with defaults"
                if created
                else f"Ledger loaded with {transaction_count} transactions"
            ),
            details={
                "transaction_count": transaction_count,
                "category_count": category_count,
            },
        )

    @staticmethod
    def ledger_saved(account_id: str, transaction_count: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LEDGER_SAVED,
            severity=ActivitySeverity.DEBUG,
            account_id=account_id,
            entity_type="ledger",
            description="Ledger persisted",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def save_failed(account_id: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SAVE_FAILED,
            severity=ActivitySeverity.ERROR,
            account_id=account_id,
            entity_type="ledger",
            description="Ledger could not be persisted; in-memory state kept",
            error_message=error_message,
        )

    @staticmethod
    def transaction_created(
        account_id: str,
        transaction_id: str,
        amount: str,
        parent_id: Optional[str],
    ) -> ActivityEvent:
        kind = "Sub-item" if parent_id else "Transaction"
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_CREATED,
            account_id=account_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"{kind} created: {amount}",
            details={"amount": amount, "parent_id": parent_id},
        )

    @staticmethod
    def transaction_updated(
        account_id: str,
        transaction_id: str,
        amount: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_UPDATED,
            account_id=account_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction updated: {amount}",
            details={"amount": amount},
        )

    @staticmethod
    def transaction_deleted(
        account_id: str,
        transaction_id: str,
        removed_ids: list[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_DELETED,
            account_id=account_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction deleted with {len(removed_ids) - 1} sub-items",
            details={"removed_ids": removed_ids},
        )

    @staticmethod
    def parent_rederived(
        account_id: str,
        parent_id: str,
        amount: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PARENT_REDERIVED,
            severity=ActivitySeverity.DEBUG,
            account_id=account_id,
            entity_type="transaction",
            entity_id=parent_id,
            description=f"Parent amount recomputed: {amount}",
            details={"amount": amount},
        )

    @staticmethod
    def category_changed(
        account_id: str,
        event_type: ActivityEventType,
        category_id: str,
        name: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=event_type,
            account_id=account_id,
            entity_type="category",
            entity_id=category_id,
            description=f"Category {event_type.value.split('_')[-1]}: {name}",
            details={"name": name},
        )

    @staticmethod
    def category_delete_refused(
        account_id: str,
        category_id: str,
        name: str,
        usage_count: int,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.CATEGORY_DELETE_REFUSED,
            severity=ActivitySeverity.WARNING,
            account_id=account_id,
            entity_type="category",
            entity_id=category_id,
            description=f"Category '{name}' is used by {usage_count} transactions",
            details={"name": name, "usage_count": usage_count},
        )

    @staticmethod
    def preferences_updated(account_id: str, changes: dict) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PREFERENCES_UPDATED,
            account_id=account_id,
            entity_type="ledger",
            description="Ledger preferences updated",
            details=changes,
        )

    @staticmethod
    def validation_failed(
        account_id: str,
        operation: str,
        issues: list[dict],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.VALIDATION_FAILED,
            severity=ActivitySeverity.WARNING,
            account_id=account_id,
            description=f"{operation} rejected with {len(issues)} issues",
            details={"operation": operation, "issues": issues},
        )

    @staticmethod
    def export_generated(account_id: str, row_count: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXPORT_GENERATED,
            account_id=account_id,
            entity_type="ledger",
            description=f"Export generated with {row_count} rows",
            details={"row_count": row_count},
        )
