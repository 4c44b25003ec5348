"""Validation package."""

from finledger.validation.validator import (
    CategoryValidator,
    TransactionValidator,
    issues_from_pydantic,
)

__all__ = ["CategoryValidator", "TransactionValidator", "issues_from_pydantic"]
