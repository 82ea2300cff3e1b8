"""Abstract storage port for journal state."""

from abc import ABC, abstractmethod
from typing import Any

JsonValue = Any


class BaseStorage(ABC):
    """Key/value store holding one JSON document per key."""

    @abstractmethod
    async def load(self, key: str) -> JsonValue | None:
        """
        Load the document stored under ``key``.

        Returns:
            Decoded JSON, or None if the key was never saved
        """
        pass

    @abstractmethod
    async def save(self, key: str, value: JsonValue | None) -> None:
        """Store ``value`` under ``key``. None removes the key."""
        pass
