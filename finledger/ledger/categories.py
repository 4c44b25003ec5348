"""
Category operations and the deletion guard.

Transactions point at categories by name, so:
- names stay unique case-insensitively
- a category still named by any transaction (top-level or sub-item)
  cannot be removed
- renaming a category does not rewrite the transactions that use it
"""

from collections.abc import Iterable, Sequence
from typing import Optional
from uuid import uuid4

from finledger.errors import CategoryInUseError, DuplicateCategoryError, NotFoundError
from finledger.models.ledger import Category, Transaction
from finledger.validation.validator import CategoryValidator


PLACEHOLDER_ICON = "question_mark_circle"

_validator = CategoryValidator()


def new_category_id() -> str:
    return f"cat-{uuid4().hex}"


def _index_of(categories: Sequence[Category], category_id: str) -> int:
    for index, category in enumerate(categories):
        if category.id == category_id:
            return index
    raise NotFoundError("category", category_id)


def _all_records(records: Iterable[Transaction]) -> Iterable[Transaction]:
    # accepts the flat list or a built tree
    for record in records:
        yield record
        yield from record.sub_items


def category_usage_count(records: Iterable[Transaction], name: str) -> int:
    """Number of transactions (top-level and sub-items) naming `name`."""
    return sum(1 for t in _all_records(records) if t.category == name)


def find_category(categories: Iterable[Category], name: str) -> Optional[Category]:
    """Exact-name lookup, the same join Transaction.category uses."""
    for category in categories:
        if category.name == name:
            return category
    return None


def create_category(
    categories: Sequence[Category],
    name: str,
    icon: Optional[str] = None,
    placeholder_icon: str = PLACEHOLDER_ICON,
    category_id: Optional[str] = None,
) -> tuple[list[Category], Category]:
    """
    Add a category.

    Returns:
        (new category list, created category)

    Raises:
        ValidationError: Empty name
        DuplicateCategoryError: Name already used (case-insensitive)
    """
    clean_name = _validator.check_name(name)
    if _validator.find_conflict(list(categories), clean_name) is not None:
        raise DuplicateCategoryError(clean_name)

    category = Category(
        id=category_id or new_category_id(),
        name=clean_name,
        icon=icon or placeholder_icon,
    )
    return [*categories, category], category


def update_category(
    categories: Sequence[Category],
    category_id: str,
    name: Optional[str] = None,
    icon: Optional[str] = None,
) -> tuple[list[Category], Category]:
    """
    Rename a category and/or change its icon.

    Raises:
        NotFoundError: Unknown category
        ValidationError: Empty name
        DuplicateCategoryError: Name clashes with another category
    """
    index = _index_of(categories, category_id)
    current = categories[index]

    changes = {}
    if name is not None:
        clean_name = _validator.check_name(name)
        if _validator.find_conflict(list(categories), clean_name, exclude_id=category_id):
            raise DuplicateCategoryError(clean_name)
        changes["name"] = clean_name
    if icon is not None:
        changes["icon"] = icon

    updated_category = current.model_copy(update=changes)
    updated = list(categories)
    updated[index] = updated_category
    return updated, updated_category


def delete_category(
    categories: Sequence[Category],
    records: Iterable[Transaction],
    category_id: str,
) -> list[Category]:
    """
    Remove a category unless a transaction still uses it.

    Raises:
        NotFoundError: Unknown category
        CategoryInUseError: At least one transaction names this category
    """
    index = _index_of(categories, category_id)
    candidate = categories[index]

    usage = category_usage_count(records, candidate.name)
    if usage:
        raise CategoryInUseError(candidate.name, usage)

    return [c for c in categories if c.id != category_id]
