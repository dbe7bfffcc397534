"""Per-key asyncio locks."""

import asyncio
from weakref import WeakValueDictionary


class KeyedLocks:
    """Hands out one ``asyncio.Lock`` per key.

    Locks are held weakly, so an entry disappears once no coroutine holds or
    waits on it.
    """

    def __init__(self) -> None:
        self._locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()

    def get(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


def session_key(session_id: str, client_id: str) -> str:
    """Cache and lock key of a session-scoped resource."""
    return f"{client_id}:{session_id}"
