"""
Exceptions for firestarter operations.

The hierarchy is closed: every error raised by the library is one of the
four subclasses below and carries an ``ErrorKind`` tag, so callers can
branch on ``error.kind`` instead of ``isinstance`` chains if they prefer.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Tag carried by every firestarter error."""
    VALIDATION = 'validation'
    API = 'api'
    AUTHORIZATION = 'authorization'
    LOCAL_STORAGE = 'local_storage'


class ErrorCode(str, Enum):
    """Sub-codes carried by ApiError."""
    # Authentication
    INVALID_CREDENTIALS = 'INVALID_CREDENTIALS'
    UNAUTHORIZED = 'UNAUTHORIZED'
    SESSION_EXPIRED = 'SESSION_EXPIRED'

    # Account
    USERNAME_EXISTS = 'USERNAME_EXISTS'
    ACCOUNT_NOT_FOUND = 'ACCOUNT_NOT_FOUND'

    # File operations
    FILE_NOT_FOUND = 'FILE_NOT_FOUND'
    UPLOAD_FAILED = 'UPLOAD_FAILED'
    DOWNLOAD_FAILED = 'DOWNLOAD_FAILED'
    DELETE_FAILED = 'DELETE_FAILED'

    # Balance
    INSUFFICIENT_BALANCE = 'INSUFFICIENT_BALANCE'
    INSUFFICIENT_SOL = 'INSUFFICIENT_SOL'

    # Transport
    NETWORK_ERROR = 'NETWORK_ERROR'
    TIMEOUT = 'TIMEOUT'

    UNKNOWN = 'UNKNOWN'


class FirestarterError(Exception):
    """Base exception for all firestarter errors."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(FirestarterError):
    """Raised for malformed input, always before any network call."""
    kind = ErrorKind.VALIDATION


class ApiError(FirestarterError):
    """Raised when the remote service rejected or failed a call."""
    kind = ErrorKind.API

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: ErrorCode = ErrorCode.UNKNOWN
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human readable message
            status: HTTP status code (None for transport failures)
            code: Sub-code describing the failure
        """
        self.status = status
        self.code = code
        super().__init__(message)

    def __repr__(self) -> str:
        return f"ApiError(status={self.status!r}, code={self.code.value}, message={self.message!r})"


class AuthorizationError(FirestarterError):
    """Raised when no usable credential path remains."""
    kind = ErrorKind.AUTHORIZATION


class LocalStorageError(FirestarterError):
    """Raised when the local persistence medium cannot be read or written."""
    kind = ErrorKind.LOCAL_STORAGE
