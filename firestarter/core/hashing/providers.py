"""Hash providers used for content addressing."""
from typing import Dict, Protocol, Type, runtime_checkable

from Crypto.Hash import SHA256

from ..exceptions import ValidationError


@runtime_checkable
class HashProvider(Protocol):
    """A named 256-bit hash over a byte string."""

    name: str

    def hexdigest(self, data: bytes) -> str:
        """Return the lowercase hex digest of ``data``."""
        ...


class Blake3Provider:
    """BLAKE3 with the default 32-byte output."""

    name = 'blake3'

    def __init__(self):
        from blake3 import blake3
        self._factory = blake3

    def hexdigest(self, data: bytes) -> str:
        return self._factory(bytes(data)).hexdigest()


class Sha256Provider:
    """SHA-256 via pycryptodome."""

    name = 'sha256'

    def hexdigest(self, data: bytes) -> str:
        return SHA256.new(bytes(data)).hexdigest()


PROVIDERS: Dict[str, Type] = {
    Blake3Provider.name: Blake3Provider,
    Sha256Provider.name: Sha256Provider,
}


def get_provider(name: str) -> HashProvider:
    """
    Instantiate a provider by name.

    Raises:
        ValidationError: If no provider has that name
    """
    try:
        provider_cls = PROVIDERS[name.lower()]
    except KeyError:
        raise ValidationError(
            f"Unknown hash algorithm '{name}', expected one of: {', '.join(sorted(PROVIDERS))}"
        ) from None
    return provider_cls()
