# cache.py

import threading
import time
from collections import OrderedDict
from typing import Any, Optional


class TTLCache:
    """Small in-process cache for registry responses.

    Entries older than `ttl_sec` are dropped on read; past `max_items` the
    oldest entry is evicted.
    """

    def __init__(self, ttl_sec: int = 3600, max_items: int = 512):
        self.ttl = ttl_sec
        self.max_items = max_items
        self._store: "OrderedDict[str, tuple]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            ts, value = entry
            if time.monotonic() - ts > self.ttl:
                self._store.pop(key, None)
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._store[key] = (time.monotonic(), value)
            self._store.move_to_end(key)
            while len(self._store) > self.max_items:
                self._store.popitem(last=False)

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        # Live entries only; expired ones linger until the next read of their key
        with self._lock:
            now = time.monotonic()
            return sum(1 for ts, _ in self._store.values() if now - ts <= self.ttl)
