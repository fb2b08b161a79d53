"""
Firestarter - Async Python client for Pipe Network storage.

Usage:
    >>> from firestarter import FirestarterClient
    >>>
    >>> async with FirestarterClient() as fs:
    ...     await fs.login("myusername", "mypassword")
    ...     result = await fs.upload(b"hello", "hello.txt")
    ...     print(result.identifier)
"""
import logging
from .client import FirestarterClient

# Configuration and gateway
from .core.api import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    AuthSession,
    AuthHeaders,
    AuthMethod,
    HTTPTransport,
    StorageGateway,
)

# Data model
from .core.models import (
    Account,
    Authenticated,
    Balance,
    FileRecord,
    PublicLink,
    TokenSet,
    UploadResult,
    WalletCredentials,
)

# Errors
from .core.exceptions import (
    ApiError,
    AuthorizationError,
    ErrorCode,
    ErrorKind,
    FirestarterError,
    LocalStorageError,
    ValidationError,
)

# Local persistence
from .core.storage import (
    KeyValueStorage,
    MemoryStorage,
    SQLiteStorage,
    CredentialStore,
    FileManifestStore,
)

from .core.hashing import ContentAddresser, Blake3Provider, Sha256Provider
from .core.crypto import generate_credentials_from_address, generate_credentials_from_signature
from .core.logging import configure_loggers

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for firestarter modules.

    Args:
        level: Logging level (default: logging.INFO)
    """
    configure_loggers(level)


__all__ = [
    'FirestarterClient',
    'StorageGateway',
    'AuthSession',
    'AuthHeaders',
    'AuthMethod',
    'HTTPTransport',
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'Account',
    'Authenticated',
    'Balance',
    'FileRecord',
    'PublicLink',
    'TokenSet',
    'UploadResult',
    'WalletCredentials',
    'FirestarterError',
    'ValidationError',
    'ApiError',
    'AuthorizationError',
    'LocalStorageError',
    'ErrorCode',
    'ErrorKind',
    'KeyValueStorage',
    'MemoryStorage',
    'SQLiteStorage',
    'CredentialStore',
    'FileManifestStore',
    'ContentAddresser',
    'Blake3Provider',
    'Sha256Provider',
    'generate_credentials_from_address',
    'generate_credentials_from_signature',
    'setup_logging',
]
