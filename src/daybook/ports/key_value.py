"""Key-value cache interface."""

from typing import Protocol


class KeyValueCache(Protocol):
    """Interface for a small local string key-value store."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        ...
