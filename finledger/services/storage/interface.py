"""
Abstract Storage Interface

DESIGN DECISION: The ledger is stored as one opaque blob per account.
Storage only moves JSON-compatible dicts; it knows nothing about
transactions, invariants or defaults (normalization happens at load,
in the ledger core).

The interface is intentionally small:
- load the whole blob
- overwrite the whole blob (no deltas)
- delete it
"""

import re
from abc import ABC, abstractmethod
from typing import Optional


ACCOUNT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.@-]+$")


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger blob storage.

    Any storage implementation (JSON files, a key-value service, etc.)
    must implement these methods. Last writer wins.
    """

    @abstractmethod
    def load_ledger(self, account_id: str) -> Optional[dict]:
        """
        Read the stored blob for an account.

        Args:
            account_id: Active account identifier

        Returns:
            The decoded blob, or None if the account has no ledger yet

        Raises:
            StorageError: If the backend cannot be read or the blob is corrupt
        """
        pass

    @abstractmethod
    def save_ledger(self, account_id: str, payload: dict) -> bool:
        """
        Overwrite the stored blob for an account.

        Args:
            account_id: Active account identifier
            payload: JSON-compatible ledger blob

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    def delete_ledger(self, account_id: str) -> bool:
        """
        Remove the stored blob for an account.

        Returns:
            True if a blob was deleted, False if there was none
        """
        pass

    def validate_account_id(self, account_id: str) -> str:
        """Reject account ids that cannot be used as a storage key."""
        if not isinstance(account_id, str) or not ACCOUNT_ID_PATTERN.match(account_id):
            raise StorageError(f"Invalid account id: {account_id!r}")
        return account_id


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptBlobError(StorageError):
    """Stored blob exists but cannot be decoded."""
    pass
