"""Pipe storage API module."""
from .config import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    DEFAULT_BASE_URL,
    PIPE_TOKEN_MINT,
)
from .errors import StatusCodes, error_from_status
from .transport import HTTPTransport, TransportResponse, NO_TIMEOUT
from .auth import AuthSession, AuthHeaders, AuthMethod
from .gateway import StorageGateway, ProgressCallback

__all__ = [
    # Gateway
    'StorageGateway',
    'ProgressCallback',

    # Auth
    'AuthSession',
    'AuthHeaders',
    'AuthMethod',

    # Transport
    'HTTPTransport',
    'TransportResponse',
    'NO_TIMEOUT',

    # Configuration
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'DEFAULT_BASE_URL',
    'PIPE_TOKEN_MINT',

    # Errors
    'StatusCodes',
    'error_from_status',
]
