"""Key-value cache clients.

Services receive a cache client at construction time. Anything with
``get(key)``, ``set(key, value, ttl)`` and ``delete(key)`` will do; a miss is
reported as ``None``, so ``None`` itself is never stored.
"""

import copy
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple


class CacheClient(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any, ttl: int) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryCache:
    """In-process TTL cache. Expired entries are dropped lazily on read.

    Values are copied in and out, so callers never share the stored object.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: int) -> None:
        if value is None:
            return
        with self._lock:
            self._entries[key] = (self._clock() + ttl, copy.deepcopy(value))

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class FailSafeCache:
    """Wraps another client so backend errors read as misses and no-ops."""

    def __init__(self, backend: CacheClient, logger: Optional[logging.Logger] = None):
        self.backend = backend
        self.logger = logger or logging.getLogger(__name__)

    def get(self, key: str) -> Any:
        try:
            return self.backend.get(key)
        except Exception as exc:
            self.logger.warning(f"[cache-error] op=get key={key} error={exc}")
            return None

    def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            self.backend.set(key, value, ttl)
        except Exception as exc:
            self.logger.warning(f"[cache-error] op=set key={key} error={exc}")

    def delete(self, key: str) -> None:
        try:
            self.backend.delete(key)
        except Exception as exc:
            self.logger.warning(f"[cache-error] op=delete key={key} error={exc}")
