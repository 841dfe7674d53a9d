"""In-memory storage backend, used by tests and throwaway sessions."""

from typing import Dict, Optional

from flowcanvas.exceptions import StorageError
from flowcanvas.storage.interface import KeyValueStore


class MemoryStore(KeyValueStore):
    """Dictionary-backed key-value store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._open = False

    async def initialize(self) -> None:
        self._open = True

    async def close(self) -> None:
        self._open = False

    def _check(self) -> None:
        if not self._open:
            raise StorageError("Storage backend not initialized")

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._check()
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._check()
        self._data.pop(key, None)
