"""
Storage protocols.

Defines the key-value medium the local stores persist into.
"""
from typing import Iterator, Optional, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStorage(Protocol):
    """
    Protocol for key-value storage media.

    One string value per key. Implementations raise LocalStorageError when
    the medium cannot be read or written.
    """

    def get_item(self, key: str) -> Optional[str]:
        """
        Read a value.

        Returns:
            Stored string, or None if the key is absent
        """
        ...

    def set_item(self, key: str, value: str) -> None:
        """Write a value, replacing any previous one."""
        ...

    def remove_item(self, key: str) -> None:
        """Delete a key. Missing keys are ignored."""
        ...

    def keys(self) -> Iterator[str]:
        """Iterate over stored keys."""
        ...

    def close(self) -> None:
        """Release resources held by the medium."""
        ...
