"""In-memory backend implementation."""

import structlog

from mission_control.backend import Backend, StorageQuotaExceeded

logger = structlog.get_logger()


class MemoryBackend(Backend):
    """Process-local backend holding strings in a dict.

    An optional quota bounds the total number of stored characters
    (keys plus values), mirroring a capacity-bounded browser store.
    """

    def __init__(self, quota_bytes: int | None = None, initial: dict[str, str] | None = None) -> None:
        """Initialize memory backend.

        Args:
            quota_bytes: Maximum total size of keys and values, or None for unbounded
            initial: Optional pre-populated contents
        """
        self.quota_bytes = quota_bytes
        self._items: dict[str, str] = dict(initial or {})
        logger.debug("Initializing memory backend", quota_bytes=quota_bytes, keys=len(self._items))

    def _size_with(self, key: str, value: str) -> int:
        size = sum(len(k) + len(v) for k, v in self._items.items() if k != key)
        return size + len(key) + len(value)

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            size = self._size_with(key, value)
            if size > self.quota_bytes:
                logger.debug("Memory quota exceeded", key=key, size=size, quota=self.quota_bytes)
                raise StorageQuotaExceeded(f"Writing {key!r} would use {size} of {self.quota_bytes} bytes")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)
