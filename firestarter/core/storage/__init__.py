"""
Local storage module.

Persists credentials and the file manifest into a key-value medium.
"""
from .protocols import KeyValueStorage
from .backends import MemoryStorage, SQLiteStorage
from .credential_store import CredentialStore, DEFAULT_ACCOUNT_KEY
from .manifest_store import (
    FileManifestStore,
    DEFAULT_FILES_KEY,
    DEFAULT_MAX_FILES,
    account_files_key,
)

__all__ = [
    'KeyValueStorage',
    'MemoryStorage',
    'SQLiteStorage',
    'CredentialStore',
    'FileManifestStore',
    'DEFAULT_ACCOUNT_KEY',
    'DEFAULT_FILES_KEY',
    'DEFAULT_MAX_FILES',
    'account_files_key',
]
