"""
JSON File Storage Implementation

One `<account_id>.json` file per account under the configured data
directory. Each save rewrites the whole file through a temporary file and
an atomic rename, so a crash mid-write leaves the previous blob intact.

TRADEOFFS:
- No locking across processes (last writer wins)
- Transient OS errors are retried a few times, then surface as StorageError
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finledger.config import get_settings
from finledger.services.storage.interface import (
    CorruptBlobError,
    LedgerStorageInterface,
    StorageError,
)


_io_retry = retry(
    retry=retry_if_exception_type(OSError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    reraise=True,
)


class JsonFileLedgerStorage(LedgerStorageInterface):
    """
    File-backed implementation of ledger storage.

    Args:
        data_dir: Directory for ledger files. Defaults to the configured
            FINLEDGER_DATA_DIR.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        self._data_dir = Path(data_dir) if data_dir else get_settings().ledger.data_dir

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, account_id: str) -> Path:
        return self._data_dir / f"{self.validate_account_id(account_id)}.json"

    @_io_retry
    def _read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    @_io_retry
    def _write_atomic(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def load_ledger(self, account_id: str) -> Optional[dict]:
        """Read and decode the account's file; None if it does not exist."""
        path = self.path_for(account_id)
        if not path.exists():
            return None

        try:
            text = self._read_text(path)
        except OSError as e:
            raise StorageError(f"Failed to read ledger {path}: {e}")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptBlobError(f"Ledger file {path} is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise CorruptBlobError(f"Ledger file {path} does not hold a JSON object")
        return data

    def save_ledger(self, account_id: str, payload: dict) -> bool:
        """Overwrite the account's file with `payload`."""
        path = self.path_for(account_id)
        try:
            text = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Failed to encode ledger: {e}")

        try:
            self._write_atomic(path, text)
        except OSError as e:
            raise StorageError(f"Failed to save ledger {path}: {e}")
        return True

    def delete_ledger(self, account_id: str) -> bool:
        path = self.path_for(account_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete ledger {path}: {e}")
        return True
