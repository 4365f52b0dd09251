import asyncio
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Optional, Set, Tuple

from .config import DEFAULT_CACHE_NAMESPACE, DEFAULT_CACHE_REFRESH_THRESHOLD_MS, DEFAULT_CACHE_TTL_MS

logger = logging.getLogger(__name__)


class MemoryStore:
    """
    In-process key/value store with a time-to-live per entry.

    Each key is stored alongside the monotonic time at which it expires.
    Expired entries are dropped lazily when read.  When ``max_entries`` is
    set the least recently used entry is evicted once the bound is
    exceeded.

    Parameters
    ----------
    max_entries : int, optional
        Upper bound on the number of stored entries.  ``None`` (the
        default) keeps everything until it expires.
    """

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries
        self._data: "OrderedDict[str, Tuple[Any, Optional[float]]]" = OrderedDict()
        # Calls arrive from worker threads via asyncio.to_thread
        self._lock = threading.Lock()

    def get(self, key: str) -> Any:
        now = time.monotonic()
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            val, expires_at = entry
            if expires_at is not None and now >= expires_at:
                del self._data[key]
                return None
            self._data.move_to_end(key)
            return val

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        expires_at = time.monotonic() + ttl / 1000.0 if ttl else None
        with self._lock:
            self._data[key] = (value, expires_at)
            self._data.move_to_end(key)
            if self.max_entries is not None:
                while len(self._data) > self.max_entries:
                    self._data.popitem(last=False)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self, prefix: str = "") -> None:
        with self._lock:
            for key in [k for k in self._data if k.startswith(prefix)]:
                del self._data[key]

    def ttl_remaining(self, key: str) -> Optional[int]:
        """Milliseconds left before ``key`` expires, -1 if it never does, None if absent."""
        now = time.monotonic()
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            _, expires_at = entry
            if expires_at is None:
                return -1
            if now >= expires_at:
                del self._data[key]
                return None
            return int((expires_at - now) * 1000)

    def __len__(self) -> int:
        return len(self._data)


class CacheManager:
    """
    Async front for a key/value store shared by the service.

    Keys are namespaced before they reach the store, and store calls run in
    a worker thread so a blocking backend (Redis) never stalls the event
    loop.  With ``non_blocking`` set, writes are scheduled and ``set``
    returns without waiting for the store.
    """

    def __init__(
        self,
        store: Optional[Any] = None,
        ttl: int = DEFAULT_CACHE_TTL_MS,
        namespace: str = DEFAULT_CACHE_NAMESPACE,
        refresh_threshold: int = DEFAULT_CACHE_REFRESH_THRESHOLD_MS,
        non_blocking: bool = False,
    ):
        self.store = store if store is not None else MemoryStore()
        self.ttl = ttl
        self.namespace = namespace
        self.refresh_threshold = refresh_threshold
        self.non_blocking = non_blocking
        self._pending: Set["asyncio.Task[None]"] = set()

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    async def get(self, key: str) -> Any:
        return await asyncio.to_thread(self.store.get, self._key(key))

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self.ttl if ttl is None else ttl
        write = asyncio.to_thread(self.store.set, self._key(key), value, ttl)
        if not self.non_blocking:
            await write
            return
        task = asyncio.ensure_future(write)
        self._pending.add(task)
        task.add_done_callback(self._write_done)

    def _write_done(self, task: "asyncio.Task[None]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background cache write failed: %s", exc)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self.store.delete, self._key(key))

    async def clear(self) -> None:
        prefix = f"{self.namespace}:" if self.namespace else ""
        await asyncio.to_thread(self.store.clear, prefix)

    async def ttl_remaining(self, key: str) -> Optional[int]:
        return await asyncio.to_thread(self.store.ttl_remaining, self._key(key))

    async def needs_refresh(self, key: str) -> bool:
        """True when ``key`` is absent or expires within ``refresh_threshold``."""
        remaining = await self.ttl_remaining(key)
        if remaining is None:
            return True
        return 0 <= remaining < self.refresh_threshold

    async def flush(self) -> None:
        """Wait for any scheduled non-blocking writes to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
