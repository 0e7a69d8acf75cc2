"""Short-lived in-memory response cache."""

import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple


class MemoryCache:
    """In-memory LRU cache with per-entry expiry."""

    def __init__(self, max_size: int = 500, ttl: float = 300,
                 clock: Callable[[], float] = time.monotonic):
        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock
        self.cache: 'OrderedDict[str, Tuple[Any, float]]' = OrderedDict()  # key -> (value, expiry)
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache, dropping it if expired."""
        item = self.cache.get(key)
        if item is None:
            self.misses += 1
            return None

        value, expiry_time = item
        if expiry_time <= self._clock():
            del self.cache[key]
            self.misses += 1
            return None

        # Most recently used goes last
        self.cache.move_to_end(key)
        self.hits += 1
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Set value in cache."""
        expiry_time = self._clock() + (ttl if ttl is not None else self.ttl)

        if key in self.cache:
            self.cache.move_to_end(key)
        elif len(self.cache) >= self.max_size:
            self.cache.popitem(last=False)

        self.cache[key] = (value, expiry_time)

    def delete(self, key: str) -> bool:
        return self.cache.pop(key, None) is not None

    def clear(self) -> None:
        """Clear all cache entries."""
        self.cache.clear()

    def cleanup_expired(self) -> int:
        """Remove expired entries and return count."""
        now = self._clock()
        expired_keys = [key for key, (_, expiry_time) in self.cache.items() if expiry_time <= now]
        for key in expired_keys:
            del self.cache[key]
        return len(expired_keys)

    def size(self) -> int:
        return len(self.cache)

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total = self.hits + self.misses
        return {
            'size': len(self.cache),
            'max_size': self.max_size,
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': self.hits / total if total else 0.0
        }
