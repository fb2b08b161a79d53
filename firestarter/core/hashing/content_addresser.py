"""
Content addressing.

Computes the identifier recorded for an upload. The identifier depends on
the payload bytes only; the service itself retrieves files by display name.
"""
import importlib.util
import warnings
from typing import Optional

from ..logging import get_logger
from .providers import Blake3Provider, HashProvider, Sha256Provider

logger = get_logger('firestarter.hashing')

_fallback_warned = False


def _warn_fallback() -> None:
    global _fallback_warned
    if _fallback_warned:
        return
    _fallback_warned = True
    message = (
        "blake3 is not installed; content identifiers will be computed with SHA-256 "
        "and will not match identifiers produced with BLAKE3"
    )
    logger.warning(message)
    warnings.warn(message, RuntimeWarning, stacklevel=3)


class ContentAddresser:
    """
    Computes hex content identifiers with one hash provider.

    The provider is fixed at construction so a single addresser never mixes
    algorithms.

    Example:
        >>> addresser = ContentAddresser()
        >>> addresser.compute(b"hi")  # BLAKE3 hex digest
    """

    def __init__(self, provider: Optional[HashProvider] = None):
        """
        Initialize addresser.

        Args:
            provider: Hash provider (BLAKE3 if not provided)
        """
        self._provider = provider or Blake3Provider()

    @classmethod
    def auto(cls) -> 'ContentAddresser':
        """BLAKE3 when the blake3 package is importable, SHA-256 otherwise."""
        if importlib.util.find_spec('blake3') is not None:
            return cls(Blake3Provider())
        _warn_fallback()
        return cls(Sha256Provider())

    @property
    def algorithm(self) -> str:
        """Name of the hash algorithm in use."""
        return self._provider.name

    def compute(self, data: bytes) -> str:
        """Return the hex identifier for ``data``."""
        return self._provider.hexdigest(data)

    def __repr__(self) -> str:
        return f"ContentAddresser(algorithm={self.algorithm!r})"
