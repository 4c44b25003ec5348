"""
Record Validation

Turns raw field mappings coming from the caller (form input, a loaded blob)
into validated Transaction and Category records.

Two stages, as with any input the ledger accepts:

STAGE 1 - PRESENCE:
- Required fields exist and are not blank

STAGE 2 - SCHEMA:
- Pydantic parses amount, date and type
- Non-negative amount, parseable date, known type

IMPORTANT: Validation NEVER silently fixes issues.
It reports all of them at once through ValidationError.
"""

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from finledger.errors import ValidationError
from finledger.models.ledger import Category, Transaction, ValidationIssue


# Fields a caller may supply for a transaction; id and parent_id are engine-owned
EDITABLE_FIELDS = ("description", "amount", "date", "type", "category", "notes")
REQUIRED_FIELDS = ("description", "amount", "date", "type", "category")

# camelCase spellings accepted from loaded blobs
_FIELD_ALIASES = {"parentId": "parent_id", "subItems": "sub_items"}


def _issue_type_for(error_type: str) -> str:
    if error_type == "missing":
        return "missing"
    if error_type.startswith(("decimal", "float", "int", "datetime", "date")):
        return "invalid_format"
    return "invalid_value"


def _friendly_message(field: str, error: dict) -> str:
    error_type = error.get("type", "")
    if error_type == "missing":
        return f"{field} is required"
    if error_type == "string_too_short":
        return f"{field} must not be empty"
    if error_type == "greater_than_equal":
        return f"{field} must not be negative"
    if error_type.startswith("decimal") or error_type.startswith("float"):
        return f"{field} must be a number"
    if error_type.startswith("datetime") or error_type.startswith("date"):
        return f"{field} is not a valid date"
    if error_type == "enum" and field.endswith("type"):
        return f"{field} must be INCOME or EXPENSE"
    return error.get("msg", f"{field} is invalid")


def issues_from_pydantic(exc: PydanticValidationError, prefix: str = "") -> list[ValidationIssue]:
    """Translate a Pydantic error into our ValidationIssue list."""
    issues = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        field = _FIELD_ALIASES.get(loc[0], loc[0]) if loc else "record"
        if prefix:
            field = f"{prefix}.{field}"
        issues.append(ValidationIssue(
            field=field,
            issue_type=_issue_type_for(error.get("type", "")),
            message=_friendly_message(field, error),
        ))
    return issues


class TransactionValidator:
    """
    Validates transaction fields before they enter the record set.

    The validator never touches the record set; it only answers
    "is this a well-formed record?".
    """

    def _check_presence(self, fields: Mapping[str, Any]) -> list[ValidationIssue]:
        issues = []
        for name in REQUIRED_FIELDS:
            value = fields.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                issues.append(ValidationIssue(
                    field=name,
                    issue_type="missing",
                    message=f"{name} is required",
                ))
        return issues

    def build(
        self,
        fields: Mapping[str, Any],
        transaction_id: str,
        parent_id: Optional[str] = None,
    ) -> Transaction:
        """
        Build a Transaction from caller-supplied fields.

        Args:
            fields: Mapping with description, amount, date, type, category, notes
            transaction_id: ID to assign (owned by the mutation engine)
            parent_id: Parent ID for sub-items

        Raises:
            ValidationError: With every issue found
        """
        unknown = set(fields) - set(EDITABLE_FIELDS)
        issues = [
            ValidationIssue(
                field=name,
                issue_type="unknown_field",
                message=f"{name} cannot be set directly",
            )
            for name in sorted(unknown)
        ]
        issues.extend(self._check_presence(fields))
        if issues:
            raise ValidationError(issues)

        payload = {name: fields.get(name) for name in EDITABLE_FIELDS}
        try:
            return Transaction(id=transaction_id, parent_id=parent_id, **payload)
        except PydanticValidationError as e:
            raise ValidationError(issues_from_pydantic(e)) from e

    def parse_stored(self, raw: Mapping[str, Any], index: int) -> Transaction:
        """Validate one transaction read from a persisted blob."""
        # sub-items are rebuilt from parentId, never trusted from storage
        data = {k: v for k, v in raw.items() if k not in ("subItems", "sub_items")}
        try:
            return Transaction.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(issues_from_pydantic(e, prefix=f"transactions[{index}]")) from e


class CategoryValidator:
    """Validates category fields and name uniqueness."""

    def check_name(self, name: Optional[str]) -> str:
        """Return the trimmed name or raise ValidationError."""
        if name is None or not str(name).strip():
            raise ValidationError([
                ValidationIssue(
                    field="name",
                    issue_type="missing",
                    message="name must not be empty",
                )
            ])
        return str(name).strip()

    def find_conflict(
        self,
        categories: list[Category],
        name: str,
        exclude_id: Optional[str] = None,
    ) -> Optional[Category]:
        """Find a category whose name matches case-insensitively."""
        wanted = name.strip().casefold()
        for category in categories:
            if category.id == exclude_id:
                continue
            if category.name.casefold() == wanted:
                return category
        return None

    def parse_stored(self, raw: Mapping[str, Any], index: int) -> Category:
        try:
            return Category.model_validate(dict(raw))
        except PydanticValidationError as e:
            raise ValidationError(issues_from_pydantic(e, prefix=f"categories[{index}]")) from e
