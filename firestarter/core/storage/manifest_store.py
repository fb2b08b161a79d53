"""
File manifest.

The storage service has no listing endpoint, so uploads are tracked
locally: a most-recent-first, capacity-bounded list of FileRecords per
storage key, unique by identifier.
"""
import json
import threading
import weakref
from typing import List, Optional, Union

from ..exceptions import LocalStorageError, ValidationError
from ..logging import get_logger
from ..models import Account, FileRecord
from .protocols import KeyValueStorage

DEFAULT_FILES_KEY = 'firestarter_file_records'
ACCOUNT_FILES_KEY_PREFIX = 'firestarter_files_'
DEFAULT_MAX_FILES = 1000

_key_locks: "weakref.WeakValueDictionary[str, threading.RLock]" = weakref.WeakValueDictionary()
_key_locks_guard = threading.Lock()


def _lock_for(key: str) -> threading.RLock:
    with _key_locks_guard:
        lock = _key_locks.get(key)
        if lock is None:
            lock = threading.RLock()
            _key_locks[key] = lock
        return lock


def account_files_key(username: str) -> str:
    """Storage key of the manifest scoped to ``username``."""
    return f"{ACCOUNT_FILES_KEY_PREFIX}{username}"


class FileManifestStore:
    """
    Tracks uploaded files in a key-value storage medium.

    Example:
        >>> manifest = FileManifestStore.for_account(storage, account)
        >>> result = await gateway.upload_file(account, data, 'example.txt')
        >>> manifest.upsert(FileRecord.from_upload(result.value))
        >>> manifest.list()
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = DEFAULT_FILES_KEY,
        max_files: int = DEFAULT_MAX_FILES
    ):
        """
        Initialize manifest.

        Args:
            storage: Storage medium
            key: Storage key holding the list
            max_files: Maximum number of records kept

        Raises:
            ValidationError: If max_files is not positive
        """
        if max_files < 1:
            raise ValidationError('max_files must be at least 1')
        self._storage = storage
        self._key = key
        self._max_files = max_files
        self._lock = _lock_for(key)
        self._logger = get_logger('firestarter.storage')

    @classmethod
    def for_account(
        cls,
        storage: KeyValueStorage,
        account: Union[Account, str],
        max_files: int = DEFAULT_MAX_FILES
    ) -> 'FileManifestStore':
        """Create a manifest scoped to one account so files are tracked separately."""
        username = account.username if isinstance(account, Account) else account
        if not username:
            raise ValidationError('Username is required for an account-scoped manifest')
        return cls(storage, account_files_key(username), max_files)

    @property
    def key(self) -> str:
        return self._key

    @property
    def max_files(self) -> int:
        return self._max_files

    def upsert(self, record: FileRecord) -> None:
        """
        Add a record, or replace the one with the same identifier in place.

        New records go to the head of the list; the oldest records beyond
        ``max_files`` are dropped.

        Raises:
            LocalStorageError: If the medium cannot be read or written
        """
        with self._lock:
            files = self._read()

            for index, existing in enumerate(files):
                if existing.identifier == record.identifier:
                    files[index] = record
                    break
            else:
                files.insert(0, record)
                del files[self._max_files:]

            self._write(files)

    add_file = upsert

    def list(self) -> List[FileRecord]:
        """All records, most recent first. Empty if the medium is unreadable."""
        try:
            return self._read()
        except LocalStorageError as e:
            self._logger.error(f"Failed to list file records: {e}")
            return []

    def get(self, identifier: str) -> Optional[FileRecord]:
        for record in self.list():
            if record.identifier == identifier:
                return record
        return None

    def find_by_name(self, display_name: str) -> List[FileRecord]:
        """Records uploaded under ``display_name``."""
        return [record for record in self.list() if record.display_name == display_name]

    def remove(self, identifier: str) -> bool:
        """
        Remove the record with ``identifier``.

        Returns:
            True if a record was removed

        Raises:
            LocalStorageError: If the medium cannot be read or written
        """
        with self._lock:
            files = self._read()
            kept = [record for record in files if record.identifier != identifier]
            if len(kept) == len(files):
                return False
            self._write(kept)
            return True

    remove_file = remove

    def remove_by_name(self, display_name: str) -> int:
        """
        Remove every record uploaded under ``display_name``.

        Returns:
            Number of records removed
        """
        with self._lock:
            files = self._read()
            kept = [record for record in files if record.display_name != display_name]
            removed = len(files) - len(kept)
            if removed:
                self._write(kept)
            return removed

    def clear(self) -> None:
        """
        Remove all records.

        Raises:
            LocalStorageError: If the medium rejects the delete
        """
        with self._lock:
            self._storage.remove_item(self._key)

    def count(self) -> int:
        return len(self.list())

    def __len__(self) -> int:
        return self.count()

    def _read(self) -> List[FileRecord]:
        """
        Decode the stored list.

        Corrupt data reads as empty; medium failures propagate as
        LocalStorageError.
        """
        raw = self._storage.get_item(self._key)
        if not raw:
            return []

        try:
            entries = json.loads(raw)
        except ValueError:
            self._logger.warning(f"Corrupt file manifest under '{self._key}', treating as empty")
            return []

        if not isinstance(entries, list):
            self._logger.warning(f"Unexpected file manifest shape under '{self._key}', treating as empty")
            return []

        records = []
        for entry in entries:
            try:
                records.append(FileRecord.from_dict(entry))
            except (KeyError, ValueError, TypeError) as e:
                self._logger.warning(f"Skipping malformed file record: {e}")
        return records

    def _write(self, files: List[FileRecord]) -> None:
        payload = json.dumps([record.to_dict() for record in files])
        self._storage.set_item(self._key, payload)
