"""Storage API errors."""
from .api_errors import StatusCodes, error_from_status

__all__ = [
    'StatusCodes',
    'error_from_status',
]
