"""
Storage Services Package

Provides the abstract blob storage interface and its implementations.
JSON files are the default backend; the in-memory store backs tests.
"""

from finledger.services.storage.interface import (
    ACCOUNT_ID_PATTERN,
    CorruptBlobError,
    LedgerStorageInterface,
    StorageError,
)
from finledger.services.storage.json_file import JsonFileLedgerStorage
from finledger.services.storage.memory import InMemoryLedgerStorage

__all__ = [
    # Interfaces
    "ACCOUNT_ID_PATTERN",
    "LedgerStorageInterface",
    # Exceptions
    "CorruptBlobError",
    "StorageError",
    # Implementations
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
]
