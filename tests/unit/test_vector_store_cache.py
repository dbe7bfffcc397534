"""Unit tests for the vector store cache, keyed locks and index helpers."""

import asyncio
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from langchain_core.documents import Document
from langchain_core.embeddings import DeterministicFakeEmbedding

from ragchat.services.locks import KeyedLocks, session_key
from ragchat.services.vector_index import (
    add_to_index,
    index_exists,
    load_index,
    save_index,
    split_documents,
)
from ragchat.services.vector_store_cache import VectorStoreCache


class TestVectorStoreCache:
    def test_put_and_get(self) -> None:
        cache = VectorStoreCache(max_size=2)
        store = MagicMock()
        cache.put("a", store)

        assert cache.get("a") is store
        assert "a" in cache

    def test_evicts_least_recently_used(self) -> None:
        cache = VectorStoreCache(max_size=2)
        cache.put("a", MagicMock())
        cache.put("b", MagicMock())
        cache.get("a")
        cache.put("c", MagicMock())

        assert "a" in cache
        assert "b" not in cache
        assert len(cache) == 2

    def test_discard(self) -> None:
        cache = VectorStoreCache(max_size=2)
        cache.put("a", MagicMock())
        cache.discard("a")
        cache.discard("missing")

        assert cache.get("a") is None

    def test_invalid_size(self) -> None:
        with pytest.raises(ValueError):
            VectorStoreCache(max_size=0)


class TestKeyedLocks:
    def test_same_key_same_lock(self) -> None:
        locks = KeyedLocks()
        lock = locks.get("k")

        assert locks.get("k") is lock
        assert locks.get("other") is not lock

    async def test_serialises_same_key(self) -> None:
        locks = KeyedLocks()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with locks.get(session_key("s-1", "client-1")):
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))

        assert order == ["a-start", "a-end", "b-start", "b-end"]

    def test_session_key(self) -> None:
        assert session_key("s-1", "client-1") == "client-1:s-1"


class TestVectorIndex:
    def test_split_clamps_overlap(self) -> None:
        chunks = split_documents([Document(page_content="word " * 100)], chunk_size=50, chunk_overlap=80)

        assert len(chunks) > 1
        assert all(len(chunk.page_content) <= 50 for chunk in chunks)

    async def test_save_and_load(self, tmp_path: Path) -> None:
        embeddings = DeterministicFakeEmbedding(size=8)
        store = await add_to_index(
            None, [Document(page_content="alpha", metadata={"filename": "a.txt"})], embeddings
        )
        store = await add_to_index(store, [Document(page_content="beta")], embeddings)

        await save_index(store, tmp_path / "index")
        loaded = await load_index(tmp_path / "index", embeddings)

        assert index_exists(tmp_path / "index")
        assert loaded is not None
        hits = await loaded.asimilarity_search("alpha", k=2)
        assert {hit.page_content for hit in hits} == {"alpha", "beta"}

    async def test_load_missing_index(self, tmp_path: Path) -> None:
        assert await load_index(tmp_path / "nothing", DeterministicFakeEmbedding(size=8)) is None
