"""
Credential derivation utilities.
"""
from .credentials import (
    generate_credentials_from_address,
    generate_credentials_from_signature,
)

__all__ = [
    'generate_credentials_from_address',
    'generate_credentials_from_signature',
]
