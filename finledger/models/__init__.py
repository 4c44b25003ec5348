"""
Data Models Package

This package contains all Pydantic models used in Finledger.
All data flowing through the system must conform to these schemas.
"""

from finledger.models.ledger import (
    AssistantSnapshot,
    BalanceTone,
    Category,
    CategorySlice,
    ChatMessage,
    ChatSender,
    DashboardSummary,
    ExportRow,
    LedgerData,
    MonthlyBalance,
    MonthlyTotals,
    MutationResult,
    PeriodTotals,
    ReportSummary,
    Theme,
    Transaction,
    TransactionType,
    ValidationIssue,
)
from finledger.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Ledger models
    "AssistantSnapshot",
    "BalanceTone",
    "Category",
    "CategorySlice",
    "ChatMessage",
    "ChatSender",
    "DashboardSummary",
    "ExportRow",
    "LedgerData",
    "MonthlyBalance",
    "MonthlyTotals",
    "MutationResult",
    "PeriodTotals",
    "ReportSummary",
    "Theme",
    "Transaction",
    "TransactionType",
    "ValidationIssue",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
