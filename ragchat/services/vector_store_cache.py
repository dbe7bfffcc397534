"""Bounded in-memory cache of loaded FAISS indexes."""

from collections import OrderedDict

import structlog
from langchain_community.vectorstores import FAISS

logger = structlog.get_logger()


class VectorStoreCache:
    """LRU map of owner key to FAISS handle.

    Handles are reloadable from disk, so eviction only costs a reload.
    """

    def __init__(self, max_size: int) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max_size = max_size
        self._entries: OrderedDict[str, FAISS] = OrderedDict()

    def get(self, key: str) -> FAISS | None:
        store = self._entries.get(key)
        if store is not None:
            self._entries.move_to_end(key)
        return store

    def put(self, key: str, store: FAISS) -> None:
        self._entries[key] = store
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Vector store evicted from cache", key=evicted)

    def discard(self, key: str) -> None:
        self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
