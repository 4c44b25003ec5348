"""
Finledger Exceptions

Every error the ledger core raises derives from LedgerError.
Nothing here is retried; each error means the operation was not applied.
"""

from typing import Optional

from finledger.models.ledger import ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """
    Input failed structural validation.

    Carries every issue found, not just the first one.
    """

    def __init__(self, issues: list[ValidationIssue], message: Optional[str] = None):
        self.issues = issues
        if message is None:
            message = "; ".join(f"{i.field}: {i.message}" for i in issues) or "Invalid input"
        super().__init__(message)

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]

    def to_dicts(self) -> list[dict]:
        return [issue.model_dump() for issue in self.issues]


class DuplicateCategoryError(ValidationError):
    """A category with the same name (case-insensitive) already exists."""

    def __init__(self, name: str):
        self.name = name
        super().__init__([
            ValidationIssue(
                field="name",
                issue_type="duplicate",
                message=f"A category named '{name}' already exists",
            )
        ])


class NotFoundError(LedgerError):
    """Referenced record does not exist in the current set."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")


class CategoryInUseError(LedgerError):
    """Category cannot be removed while transactions reference it."""

    def __init__(self, category_name: str, usage_count: int):
        self.category_name = category_name
        self.usage_count = usage_count
        super().__init__(
            f"Category '{category_name}' is used by {usage_count} transaction(s)"
        )


class InvariantViolationError(LedgerError):
    """
    The record set broke a structural invariant.

    This is a programming error, not a user-facing condition.
    """
    pass
