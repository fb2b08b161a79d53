"""
Content hashing.
"""
from .providers import HashProvider, Blake3Provider, Sha256Provider, get_provider
from .content_addresser import ContentAddresser

__all__ = [
    'HashProvider',
    'Blake3Provider',
    'Sha256Provider',
    'ContentAddresser',
    'get_provider',
]
