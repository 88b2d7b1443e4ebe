"""Per-key reference-counted locks.

``KeyLocker`` serializes critical sections that must not interleave for the
same logical entity (for example two concurrent "ensure quota q1 exists"
flows). Keys are built by joining the string form of each key part with
``":"``. An entry lives only while somebody holds or waits for it.

Example:
    ```python
    locker = KeyLocker()

    async with locker.locked("Quota", "q1"):
        await client.quotas.ensure_by_name("q1", {"path": "/q1"})

    release = await locker.acquire("Quota", "q1")
    try:
        ...
    finally:
        release()
    ```
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)

KEY_SEPARATOR = ":"


@dataclass
class _LockEntry:
    mutex: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


def build_key(*keys: Any) -> str:
    return KEY_SEPARATOR.join(str(k) for k in keys)


class KeyLocker:
    """Registry of lock entries keyed by composite string keys."""

    def __init__(self) -> None:
        self._entries: dict[str, _LockEntry] = {}
        self._registry_lock = Lock()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._registry_lock:
            return key in self._entries

    def _checkout(self, key: str) -> _LockEntry:
        with self._registry_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _LockEntry()
            entry.holders += 1
            return entry

    def _checkin(self, key: str, entry: _LockEntry) -> None:
        with self._registry_lock:
            entry.holders -= 1
            if entry.holders == 0 and self._entries.get(key) is entry:
                del self._entries[key]

    async def acquire(self, *keys: Any) -> Callable[[], None]:
        """Block until the lock for ``keys`` is held; return its release function.

        The release function unlocks first and only then drops the holder count,
        so an entry is never removed while its mutex is held or awaited.
        Calling it more than once is a no-op.
        """
        key = build_key(*keys)
        entry = self._checkout(key)
        try:
            await entry.mutex.acquire()
        except BaseException:
            self._checkin(key, entry)
            raise

        released = False

        def release() -> None:
            nonlocal released
            if released:
                return
            released = True
            entry.mutex.release()
            self._checkin(key, entry)

        return release

    @asynccontextmanager
    async def locked(self, *keys: Any) -> AsyncIterator[None]:
        release = await self.acquire(*keys)
        try:
            yield
        finally:
            release()
