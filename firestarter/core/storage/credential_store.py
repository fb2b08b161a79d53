"""
Credential persistence.

Keeps one account's long-lived credentials in a single storage slot.
"""
import json
from typing import Optional

from ..exceptions import LocalStorageError
from ..logging import get_logger
from ..models import Account
from .protocols import KeyValueStorage

DEFAULT_ACCOUNT_KEY = 'firestarter_pipe_account'

REQUIRED_FIELDS = ('username', 'password', 'user_id')


class CredentialStore:
    """
    Persists an Account under one key.

    ``load`` never raises: unreadable or malformed data clears the slot and
    returns None. ``save`` and ``clear`` raise LocalStorageError.

    Example:
        >>> store = CredentialStore(SQLiteStorage("state"))
        >>> store.save(account)
        >>> store.load()
    """

    def __init__(self, storage: KeyValueStorage, key: str = DEFAULT_ACCOUNT_KEY):
        self._storage = storage
        self._key = key
        self._logger = get_logger('firestarter.storage')

    @property
    def key(self) -> str:
        return self._key

    def save(self, account: Account) -> None:
        """
        Save account.

        Raises:
            LocalStorageError: If the medium rejects the write
        """
        self._storage.set_item(self._key, account.to_json())

    def load(self) -> Optional[Account]:
        """Load the saved account, or None if absent or invalid."""
        try:
            raw = self._storage.get_item(self._key)
        except LocalStorageError as e:
            self._logger.error(f"Failed to read saved account: {e}")
            return None

        if not raw:
            return None

        try:
            data = json.loads(raw)
            if not isinstance(data, dict) or not self._has_required_fields(data):
                raise ValueError('missing required fields')
            return Account.from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            self._logger.warning(f"Invalid account data under '{self._key}' ({e}), clearing")
            self._discard()
            return None

    def clear(self) -> None:
        """
        Remove the saved account.

        Raises:
            LocalStorageError: If the medium rejects the delete
        """
        self._storage.remove_item(self._key)

    def exists(self) -> bool:
        """True if something is stored under the key."""
        return self._storage.get_item(self._key) is not None

    @staticmethod
    def _has_required_fields(data: dict) -> bool:
        return all(isinstance(data.get(name), str) and data.get(name) for name in REQUIRED_FIELDS)

    def _discard(self) -> None:
        try:
            self.clear()
        except LocalStorageError as e:
            self._logger.error(f"Failed to clear invalid account data: {e}")
