"""
Core Data Models for Finledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Serialize to the persisted per-account blob (camelCase keys)
4. Stay immutable, so every edit produces a new record set

DESIGN DECISION: Records are frozen Pydantic v2 models.
Changing a record means `model_copy(update=...)`, never attribute assignment.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


# Shared config for everything that is persisted in the ledger blob
_RECORD_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    str_strip_whitespace=True,
    frozen=True,
    extra="ignore",
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money. Amounts are stored as magnitudes; this carries the sign."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Theme(str, Enum):
    """Presentation theme stored alongside the ledger."""
    GALAXY = "galaxy"
    MINIMALIST = "minimalist"


class ChatSender(str, Enum):
    """Author of a chat message kept in the ledger blob."""
    USER = "user"
    ASSISTANT = "finassist"


class BalanceTone(str, Enum):
    """How a monthly balance bar should be colored."""
    SUCCESS = "success"   # balance >= 0
    DANGER = "danger"     # balance < 0


# =============================================================================
# CORE RECORD MODELS
# =============================================================================

class Transaction(BaseModel):
    """
    A single ledger record.

    A record with `parent_id` set is a sub-item. Its amount is folded into
    the parent's amount, which is always the sum of the parent's sub-items
    once it has any.

    `sub_items` is derived by the tree builder and never persisted.
    """
    model_config = _RECORD_CONFIG

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier, immutable once assigned"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display text"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Non-negative magnitude in the ledger currency"
    )
    date: datetime = Field(
        ...,
        description="When the transaction happened (stored as UTC)"
    )
    type: TransactionType
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Name of a Category (joined by name, not id)"
    )
    parent_id: Optional[str] = Field(
        default=None,
        description="ID of the parent transaction when this is a sub-item"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Free text, kept on sub-items only"
    )

    # Derived - populated by the tree builder
    sub_items: list["Transaction"] = Field(
        default_factory=list,
        exclude=True,
    )

    @field_validator('date', mode='before')
    @classmethod
    def promote_bare_date(cls, v):
        """A bare date means midnight UTC of that day."""
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, time.min, tzinfo=timezone.utc)
        return v

    @field_validator('date')
    @classmethod
    def normalize_to_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator('parent_id', 'notes', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_sub_item(self) -> bool:
        return self.parent_id is not None

    @property
    def date_text(self) -> str:
        """ISO-8601 rendering of the date; month filters match against this."""
        return self.date.isoformat()

    @property
    def month_key(self) -> str:
        """The `YYYY-MM` bucket this record falls into."""
        return self.date.strftime("%Y-%m")

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign implied by `type` (expenses negative)."""
        if self.type == TransactionType.EXPENSE:
            return -self.amount
        return self.amount


class Category(BaseModel):
    """
    A user-defined category.

    Transactions reference categories by `name`, so names are unique
    (case-insensitive) within a ledger.
    """
    model_config = _RECORD_CONFIG

    id: str = Field(..., min_length=1)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name, also the join key from Transaction.category"
    )
    icon: Optional[str] = Field(
        default=None,
        description="Symbolic icon name"
    )


class ChatMessage(BaseModel):
    """One message of the assistant conversation stored with the ledger."""
    model_config = _RECORD_CONFIG

    sender: ChatSender
    text: str = Field(..., min_length=1)


class LedgerData(BaseModel):
    """
    Everything persisted for one account, as a single blob.

    This is the unit the storage backend reads and writes.
    """
    model_config = _RECORD_CONFIG

    transactions: list[Transaction] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    currency: str = Field(
        default="BRL",
        min_length=3,
        max_length=3,
    )
    chat_history: list[ChatMessage] = Field(default_factory=list)
    theme: Theme = Theme.GALAXY

    def to_blob(self) -> dict:
        """Serialize to the JSON-compatible blob written to storage."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# DERIVED VALUE MODELS
# =============================================================================

class PeriodTotals(BaseModel):
    """Income/expense totals over a (possibly month-filtered) record set."""
    model_config = ConfigDict(frozen=True)

    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")


class MonthlyTotals(BaseModel):
    """One bar pair of the income vs. expense chart."""
    model_config = ConfigDict(frozen=True)

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense


class MonthlyBalance(BaseModel):
    """One bar of the monthly balance chart."""
    model_config = ConfigDict(frozen=True)

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    balance: Decimal
    tone: BalanceTone


class CategorySlice(BaseModel):
    """One slice of the expense-by-category chart."""
    model_config = ConfigDict(frozen=True)

    name: str
    value: Decimal


class DashboardSummary(BaseModel):
    """Everything the dashboard screen renders."""
    model_config = ConfigDict(frozen=True)

    month: str
    totals: PeriodTotals
    income_vs_expense: list[MonthlyTotals] = Field(default_factory=list)
    available_months: list[str] = Field(default_factory=list)


class ReportSummary(BaseModel):
    """Everything the reports screen renders."""
    model_config = ConfigDict(frozen=True)

    month: str
    monthly_balance: list[MonthlyBalance] = Field(default_factory=list)
    category_breakdown: list[CategorySlice] = Field(default_factory=list)
    available_months: list[str] = Field(default_factory=list)


class ExportRow(BaseModel):
    """
    One exported transaction.

    Sub-items follow their parent directly; `is_sub_item` marks them so the
    association survives a spreadsheet round-trip.
    """
    model_config = ConfigDict(frozen=True)

    date: date
    description: str
    category: str
    type: TransactionType
    amount: Decimal = Field(
        ...,
        description="Signed amount: expenses negative, income positive"
    )
    is_sub_item: bool = False


class MutationResult(BaseModel):
    """
    Outcome of a mutation engine operation.

    `records` is a brand-new list; the caller's list is never touched.
    """
    model_config = ConfigDict(frozen=True)

    records: list[Transaction]
    affected_id: Optional[str] = Field(
        default=None,
        description="ID of the created/updated/deleted record"
    )
    removed_ids: list[str] = Field(default_factory=list)
    rederived_parent_id: Optional[str] = Field(
        default=None,
        description="Parent whose amount was recomputed, if any"
    )


class AssistantSnapshot(BaseModel):
    """Read-only view handed to the conversational assistant."""
    model_config = ConfigDict(frozen=True)

    account_id: str
    currency: str
    transactions: tuple[Transaction, ...] = ()
    chat_history: tuple[ChatMessage, ...] = ()


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'duplicate')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
