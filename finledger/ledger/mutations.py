"""
Mutation Engine

Applies create/update/delete to the flat record list while keeping the
parent-sum invariant: once a transaction has sub-items, its amount is the
sum of their amounts.

GUARANTEES:
- Every operation returns a new list inside a MutationResult;
  the caller's list is never modified
- Re-derivation happens inside the same call that changed a child
- Validation failures raise before anything is applied (all-or-nothing)
- Sub-items are only ever attached to top-level records (depth <= 2)
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from finledger.errors import (
    InvariantViolationError,
    NotFoundError,
    ValidationError,
)
from finledger.models.ledger import MutationResult, Transaction, ValidationIssue
from finledger.validation.validator import EDITABLE_FIELDS, TransactionValidator


_validator = TransactionValidator()


def new_transaction_id() -> str:
    return f"txn-{uuid4().hex}"


def _index_of(records: Sequence[Transaction], transaction_id: str) -> int:
    for index, record in enumerate(records):
        if record.id == transaction_id:
            return index
    raise NotFoundError("transaction", transaction_id)


def _find(records: Sequence[Transaction], transaction_id: str) -> Optional[Transaction]:
    for record in records:
        if record.id == transaction_id:
            return record
    return None


def sum_of_children(records: Sequence[Transaction], parent_id: str) -> Decimal:
    return sum(
        (t.amount for t in records if t.parent_id == parent_id),
        Decimal("0"),
    )


def rederive_parent_amount(
    records: Sequence[Transaction],
    parent_id: str,
) -> list[Transaction]:
    """
    Recompute a parent's amount from its current sub-items.

    parent.amount = sum(child.amount for child in records if child.parent_id == parent.id)

    Call this after a child of `parent_id` changed. A parent left with no
    sub-items is re-derived to 0. A parent that is not in the set (orphaned
    sub-items) is left alone. Calling it twice gives the same result.

    Raises:
        InvariantViolationError: If the parent is itself a sub-item or the
            derived amount is negative
    """
    updated = list(records)
    parent = _find(updated, parent_id)
    if parent is None:
        return updated

    if parent.parent_id is not None and _find(updated, parent.parent_id) is not None:
        raise InvariantViolationError(
            f"Transaction {parent_id} is a sub-item and cannot hold sub-items"
        )

    total = sum_of_children(updated, parent_id)
    if total < 0 or not total.is_finite():
        raise InvariantViolationError(
            f"Derived amount {total} for parent {parent_id} is not a valid magnitude"
        )

    if parent.amount != total:
        index = _index_of(updated, parent_id)
        updated[index] = parent.model_copy(update={"amount": total})
    return updated


def create_transaction(
    records: Sequence[Transaction],
    fields: Mapping[str, Any],
    parent_id: Optional[str] = None,
    transaction_id: Optional[str] = None,
) -> MutationResult:
    """
    Add a transaction, optionally as a sub-item of `parent_id`.

    Args:
        records: Current flat record list
        fields: description, amount, date, type, category and optional notes
        parent_id: Top-level transaction to attach the new record to
        transaction_id: Explicit ID (generated when omitted)

    Returns:
        MutationResult with the new record appended and the parent re-derived

    Raises:
        ValidationError: Invalid fields, or the parent is itself a sub-item
        NotFoundError: `parent_id` does not exist
    """
    if parent_id is not None:
        parent = _find(records, parent_id)
        if parent is None:
            raise NotFoundError("transaction", parent_id)
        if parent.parent_id is not None:
            raise ValidationError([
                ValidationIssue(
                    field="parent_id",
                    issue_type="nested_sub_item",
                    message="Sub-items can only be added to top-level transactions",
                )
            ])

    new_id = transaction_id or new_transaction_id()
    if _find(records, new_id) is not None:
        raise ValidationError([
            ValidationIssue(
                field="id",
                issue_type="duplicate",
                message=f"Transaction ID {new_id} is already in use",
            )
        ])

    payload = dict(fields)
    if parent_id is None:
        payload["notes"] = None
    record = _validator.build(payload, new_id, parent_id)

    updated = list(records)
    updated.append(record)
    if parent_id is not None:
        updated = rederive_parent_amount(updated, parent_id)

    return MutationResult(
        records=updated,
        affected_id=record.id,
        rederived_parent_id=parent_id,
    )


def update_transaction(
    records: Sequence[Transaction],
    transaction_id: str,
    fields: Mapping[str, Any],
) -> MutationResult:
    """
    Replace the editable fields of a transaction.

    `id` and `parent_id` are preserved. Fields absent from `fields` keep
    their current value. If the transaction has sub-items, any supplied
    amount is ignored and the derived sum stays. If it is a sub-item, its
    parent is re-derived.

    Raises:
        NotFoundError: `transaction_id` does not exist
        ValidationError: The merged record is invalid
    """
    index = _index_of(records, transaction_id)
    current = records[index]
    has_children = any(t.parent_id == current.id for t in records)

    merged = {name: getattr(current, name) for name in EDITABLE_FIELDS}
    merged.update(
        (key, value) for key, value in fields.items()
        if not (has_children and key == "amount")
    )
    if current.parent_id is None:
        merged["notes"] = None

    record = _validator.build(merged, current.id, current.parent_id)

    updated = list(records)
    updated[index] = record
    rederived = None
    if has_children:
        updated = rederive_parent_amount(updated, current.id)
        rederived = current.id
    if current.parent_id is not None:
        updated = rederive_parent_amount(updated, current.parent_id)
        if _find(updated, current.parent_id) is not None:
            rederived = current.parent_id

    return MutationResult(
        records=updated,
        affected_id=current.id,
        rederived_parent_id=rederived,
    )


def delete_transaction(
    records: Sequence[Transaction],
    transaction_id: str,
) -> MutationResult:
    """
    Cascading delete.

    Removes the target and all its direct sub-items in one step. If the
    target was a sub-item, its parent is re-derived from the remaining
    sub-items (to 0 when none are left).

    Raises:
        NotFoundError: `transaction_id` does not exist
    """
    target = records[_index_of(records, transaction_id)]
    removed_ids = [target.id] + [t.id for t in records if t.parent_id == target.id]
    removed = set(removed_ids)

    updated = [t for t in records if t.id not in removed]
    rederived = None
    if target.parent_id is not None:
        updated = rederive_parent_amount(updated, target.parent_id)
        if _find(updated, target.parent_id) is not None:
            rederived = target.parent_id

    return MutationResult(
        records=updated,
        affected_id=target.id,
        removed_ids=removed_ids,
        rederived_parent_id=rederived,
    )


def verify_invariants(records: Sequence[Transaction]) -> None:
    """
    Check the structural invariants over the whole set.

    - IDs are unique
    - A sub-item is never itself a parent (links to unknown ids count as none)
    - A parent with sub-items has amount == sum of sub-items

    Raises:
        InvariantViolationError: On the first breach found
    """
    by_id: dict[str, Transaction] = {}
    for record in records:
        if record.id in by_id:
            raise InvariantViolationError(f"Duplicate transaction ID: {record.id}")
        by_id[record.id] = record

    parent_ids = []
    for record in records:
        if record.parent_id is None or record.parent_id not in by_id:
            continue
        parent = by_id[record.parent_id]
        if parent.parent_id is not None and parent.parent_id in by_id:
            raise InvariantViolationError(
                f"Transaction {record.id} is nested under sub-item {parent.id}"
            )
        if parent.id not in parent_ids:
            parent_ids.append(parent.id)

    for parent_id in parent_ids:
        expected = sum_of_children(records, parent_id)
        actual = by_id[parent_id].amount
        if actual != expected:
            raise InvariantViolationError(
                f"Parent {parent_id} amount {actual} does not match "
                f"sum of sub-items {expected}"
            )
