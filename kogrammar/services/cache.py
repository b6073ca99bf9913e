"""In-process LRU cache for backend responses."""

import hashlib
import logging
from collections import OrderedDict
from typing import Any

logger = logging.getLogger(__name__)


def hash_text(text: str) -> str:
    """Cache key for *text*."""
    return hashlib.md5(text.encode()).hexdigest()


class LRUCache:
    """Fixed-capacity mapping that evicts the least recently used entry."""

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: OrderedDict[str, Any] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._entries:
            self.misses += 1
            return default
        self._entries.move_to_end(key)
        self.hits += 1
        return self._entries[key]

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Cache full (%d), evicted %s", self.capacity, evicted)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> dict[str, int]:
        return {
            "size": len(self._entries),
            "max_size": self.capacity,
            "hits": self.hits,
            "misses": self.misses,
        }
