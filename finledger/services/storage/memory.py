"""In-memory ledger storage, used by tests and throwaway sessions."""

import json
from typing import Optional

from finledger.services.storage.interface import (
    CorruptBlobError,
    LedgerStorageInterface,
    StorageError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """
    Keeps each blob as an encoded JSON string.

    Encoding on save mirrors a real backend: callers get a fresh dict on
    every load and can never alias stored state.
    """

    def __init__(self, blobs: Optional[dict[str, str]] = None):
        self._blobs: dict[str, str] = dict(blobs or {})
        self.save_count = 0

    def load_ledger(self, account_id: str) -> Optional[dict]:
        self.validate_account_id(account_id)
        encoded = self._blobs.get(account_id)
        if encoded is None:
            return None
        try:
            return json.loads(encoded)
        except json.JSONDecodeError as e:
            raise CorruptBlobError(f"Stored ledger for {account_id} is not valid JSON: {e}")

    def save_ledger(self, account_id: str, payload: dict) -> bool:
        self.validate_account_id(account_id)
        try:
            self._blobs[account_id] = json.dumps(payload)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Failed to encode ledger: {e}")
        self.save_count += 1
        return True

    def delete_ledger(self, account_id: str) -> bool:
        self.validate_account_id(account_id)
        return self._blobs.pop(account_id, None) is not None

    def raw_blob(self, account_id: str) -> Optional[str]:
        """The encoded blob as stored (for inspection)."""
        return self._blobs.get(account_id)
