"""HTTP status mapping for the Pipe storage API."""
from typing import Dict, Optional, Tuple

from ...exceptions import ApiError, ErrorCode


class StatusCodes:
    """Well-known statuses returned by the storage API."""

    STATUS_ERRORS: Dict[int, Tuple[ErrorCode, str]] = {
        401: (ErrorCode.UNAUTHORIZED, 'Authentication failed. Please check your credentials.'),
        402: (ErrorCode.INSUFFICIENT_BALANCE, 'Insufficient PIPE balance. Please deposit more PIPE tokens.'),
        404: (ErrorCode.FILE_NOT_FOUND, 'Resource not found.'),
        409: (ErrorCode.USERNAME_EXISTS, 'Username already exists. Please choose a different username.'),
    }

    @classmethod
    def get(cls, status: int) -> Optional[Tuple[ErrorCode, str]]:
        """Gets (code, message) for a mapped status."""
        return cls.STATUS_ERRORS.get(status)


def error_from_status(status: int, default_message: Optional[str] = None) -> ApiError:
    """
    Create an ApiError from an HTTP status with a user-friendly message.

    Unmapped statuses produce a generic error carrying the raw status.
    """
    mapped = StatusCodes.get(status)
    if mapped is not None:
        code, message = mapped
        return ApiError(message, status, code)
    return ApiError(
        default_message or f"Request failed with status {status}",
        status,
        ErrorCode.UNKNOWN
    )
