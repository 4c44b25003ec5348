"""
Load-time normalization.

Blobs written by older versions may lack fields (a category without an
icon, no theme, no chat history). This module fills those in once, when a
ledger is loaded, so nothing downstream needs fallbacks.

The same pass repairs parent links and parent amounts that drifted outside
the mutation engine, so the first edit after a load starts from a set that
already satisfies the invariants.
"""

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from finledger.config import LedgerSettings, get_settings
from finledger.errors import ValidationError
from finledger.ledger.mutations import rederive_parent_amount
from finledger.models.ledger import Category, LedgerData, Theme, Transaction, ValidationIssue
from finledger.validation.validator import (
    CategoryValidator,
    TransactionValidator,
    issues_from_pydantic,
)


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="cat1", name="Groceries", icon="shopping_cart"),
    Category(id="cat2", name="Household Bills", icon="home"),
    Category(id="cat3", name="Rent", icon="key"),
    Category(id="cat4", name="Salary", icon="currency_dollar"),
    Category(id="cat5", name="Leisure", icon="puzzle_piece"),
)

_DEFAULT_ICONS = {c.name: c.icon for c in DEFAULT_CATEGORIES}

_transactions = TransactionValidator()
_categories = CategoryValidator()


def default_ledger(settings: Optional[LedgerSettings] = None) -> LedgerData:
    """A brand-new ledger: default categories and no transactions."""
    settings = settings or get_settings().ledger
    return LedgerData(
        transactions=[],
        categories=list(DEFAULT_CATEGORIES),
        currency=settings.default_currency,
        theme=Theme(settings.default_theme),
    )


def _normalize_categories(
    raw_categories: list[Mapping[str, Any]],
    placeholder_icon: str,
) -> list[Category]:
    categories = []
    for index, raw in enumerate(raw_categories):
        data = dict(raw)
        if not data.get("icon"):
            data["icon"] = _DEFAULT_ICONS.get(data.get("name"), placeholder_icon)
        categories.append(_categories.parse_stored(data, index))
    return categories


def _theme_or_default(value: Any, default: str) -> Theme:
    try:
        return Theme(value)
    except ValueError:
        return Theme(default)


def _reject_duplicate_ids(transactions: list[Transaction]) -> None:
    seen = set()
    issues = []
    for index, record in enumerate(transactions):
        if record.id in seen:
            issues.append(ValidationIssue(
                field=f"transactions[{index}].id",
                issue_type="duplicate",
                message=f"Transaction ID {record.id} appears more than once",
            ))
        seen.add(record.id)
    if issues:
        raise ValidationError(issues)


def _top_level_ancestor(
    record: Transaction,
    by_id: Mapping[str, Transaction],
) -> Optional[Transaction]:
    """Follow known parent links up to a top-level record; None on a cycle."""
    visited = {record.id}
    current = by_id[record.parent_id]
    while current.parent_id is not None and current.parent_id in by_id:
        if current.id in visited:
            return None
        visited.add(current.id)
        current = by_id[current.parent_id]
    if current.id in visited:
        return None
    return current


def repair_hierarchy(transactions: list[Transaction]) -> list[Transaction]:
    """
    Bring a stored record set back to a two-level tree with derived parents.

    - A record nested under a sub-item is re-attached to that sub-item's
      top-level ancestor
    - A record caught in a parent cycle becomes top-level
    - Every parent with sub-items is re-derived from them
    - Orphans (parent id unknown) are left as they are

    Returns a new list in the original order.
    """
    by_id = {t.id: t for t in transactions}
    repaired = []
    for record in transactions:
        if record.parent_id is None or record.parent_id not in by_id:
            repaired.append(record)
            continue
        root = _top_level_ancestor(record, by_id)
        new_parent = root.id if root is not None else None
        if new_parent != record.parent_id:
            record = record.model_copy(update={"parent_id": new_parent})
        repaired.append(record)

    known = {t.id for t in repaired}
    parent_ids = []
    for record in repaired:
        if record.parent_id in known and record.parent_id not in parent_ids:
            parent_ids.append(record.parent_id)
    for parent_id in parent_ids:
        repaired = rederive_parent_amount(repaired, parent_id)
    return repaired


def normalize_ledger(
    raw: Optional[Mapping[str, Any]],
    settings: Optional[LedgerSettings] = None,
) -> LedgerData:
    """
    Turn a stored blob into a complete LedgerData.

    - No blob: a fresh ledger with the default categories
    - No `categories` key: the default categories
    - Category without an icon: the default category's icon with the same
      name, else the placeholder icon
    - Missing or unknown currency/theme/chat history: configured defaults
    - Unknown keys are ignored
    - Parent links are repaired and parent amounts re-derived
      (see repair_hierarchy)

    Raises:
        ValidationError: A stored transaction, category or chat message is
            malformed, or a transaction ID repeats; the issue names its
            position in the blob
    """
    settings = settings or get_settings().ledger
    if raw is None:
        return default_ledger(settings)

    if "categories" in raw and raw["categories"] is not None:
        categories = _normalize_categories(raw["categories"], settings.placeholder_icon)
    else:
        categories = list(DEFAULT_CATEGORIES)

    transactions = [
        _transactions.parse_stored(item, index)
        for index, item in enumerate(raw.get("transactions") or [])
    ]
    _reject_duplicate_ids(transactions)
    transactions = repair_hierarchy(transactions)

    try:
        return LedgerData(
            transactions=transactions,
            categories=categories,
            currency=(raw.get("currency") or settings.default_currency).upper(),
            chat_history=raw.get("chatHistory") or raw.get("chat_history") or [],
            theme=_theme_or_default(raw.get("theme"), settings.default_theme),
        )
    except PydanticValidationError as e:
        raise ValidationError(issues_from_pydantic(e)) from e
