"""Per-client knowledge base backed by a persisted FAISS index."""

from datetime import UTC, datetime
from pathlib import Path

import structlog
from langchain_community.vectorstores import FAISS
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from starlette.concurrency import run_in_threadpool

from ragchat.core.exceptions import (
    DocumentProcessingError,
    FileNotFoundInStoreError,
    VectorStoreError,
)
from ragchat.core.settings import FileUploadConfig, RetrievalConfig, VectorStoreConfig
from ragchat.schemas.document_schema import KnowledgeBaseUploadResponse, StoredFileInfo
from ragchat.services.document_loader import load_documents
from ragchat.services.file_storage import (
    IncomingFile,
    available_path,
    remove_path,
    timestamped_name,
    validate_upload,
    write_file,
)
from ragchat.services.locks import KeyedLocks
from ragchat.services.vector_index import (
    add_to_index,
    load_index,
    save_index,
    split_documents,
)
from ragchat.services.vector_store_cache import VectorStoreCache

logger = structlog.get_logger()


def _cache_key(client_id: str) -> str:
    return f"kb:{client_id}"


class KnowledgeBaseService:
    """Uploads, indexes and searches the documents a client keeps long-term."""

    def __init__(
        self,
        embeddings: Embeddings,
        cache: VectorStoreCache,
        locks: KeyedLocks,
        vector_config: VectorStoreConfig,
        upload_config: FileUploadConfig,
        retrieval_config: RetrievalConfig,
    ) -> None:
        self._embeddings = embeddings
        self._cache = cache
        self._locks = locks
        self._vector_config = vector_config
        self._upload_config = upload_config
        self._retrieval_config = retrieval_config

    async def upload(
        self,
        file: IncomingFile,
        client_id: str,
        chunk_size: int | None = None,
    ) -> KnowledgeBaseUploadResponse:
        """Store an uploaded file and index its chunks."""
        validate_upload(file, self._upload_config)
        upload_dir = self._upload_config.client_upload_dir(client_id)
        path = available_path(upload_dir, timestamped_name(file.basename))

        async with self._locks.get(_cache_key(client_id)):
            await write_file(path, file.content)
            try:
                documents = await load_documents(path, file.mime_type)
                chunks = self._prepare_chunks(
                    documents,
                    filename=path.name,
                    original_filename=file.basename,
                    mime_type=file.mime_type,
                    client_id=client_id,
                    chunk_size=chunk_size,
                )
                if chunks:
                    await self._add_unlocked(client_id, chunks)
            except Exception as exc:
                logger.exception(
                    "Knowledge base upload failed",
                    filename=path.name,
                    client_id=client_id,
                )
                await remove_path(path)
                raise DocumentProcessingError() from exc

        logger.info(
            "Knowledge base file indexed",
            filename=path.name,
            chunks=len(chunks),
        )
        return KnowledgeBaseUploadResponse(filename=path.name, chunks=len(chunks))

    async def add_documents(self, client_id: str, documents: list[Document]) -> int:
        """Index raw documents into the client's knowledge base."""
        stamped = [
            Document(
                page_content=doc.page_content,
                metadata={**doc.metadata, "client_id": client_id},
            )
            for doc in documents
        ]
        async with self._locks.get(_cache_key(client_id)):
            try:
                await self._add_unlocked(client_id, stamped)
            except Exception as exc:
                logger.exception("Adding documents failed", client_id=client_id)
                raise VectorStoreError("Failed to add documents") from exc
        return len(stamped)

    async def search(
        self, client_id: str, query: str, k: int | None = None
    ) -> list[Document]:
        """Return the ``k`` chunks most similar to ``query``.

        A client without an index yet gets an empty list.
        """
        async with self._locks.get(_cache_key(client_id)):
            store = await self._get_store(client_id)
            if store is None:
                return []
            return await store.asimilarity_search(
                query, k=k or self._retrieval_config.vector_search_k
            )

    async def list_files(self, client_id: str) -> list[StoredFileInfo]:
        """Files currently stored for the client, newest first."""
        upload_dir = self._upload_config.client_upload_dir(client_id)
        return await run_in_threadpool(_scan_files, upload_dir)

    async def delete_file(self, client_id: str, filename: str) -> None:
        """Delete a stored file and rebuild the index from the remaining ones."""
        upload_dir = self._upload_config.client_upload_dir(client_id)
        path = upload_dir / Path(filename).name
        if not path.is_file():
            raise FileNotFoundInStoreError()

        async with self._locks.get(_cache_key(client_id)):
            await remove_path(path)
            await self._rebuild_unlocked(client_id, upload_dir)

    async def _rebuild_unlocked(self, client_id: str, upload_dir: Path) -> None:
        index_dir = self._vector_config.client_index_dir(client_id)
        self._cache.discard(_cache_key(client_id))
        await remove_path(index_dir)

        remaining = sorted(p for p in upload_dir.glob("*") if p.is_file())
        for path in remaining:
            try:
                documents = await load_documents(path)
            except Exception:
                logger.exception(
                    "Skipping unreadable file during rebuild", filename=path.name
                )
                continue
            chunks = self._prepare_chunks(
                documents,
                filename=path.name,
                original_filename=path.name,
                mime_type=None,
                client_id=client_id,
            )
            if chunks:
                await self._add_unlocked(client_id, chunks)
        logger.info("Knowledge base rebuilt", client_id=client_id, files=len(remaining))

    def _prepare_chunks(
        self,
        documents: list[Document],
        *,
        filename: str,
        original_filename: str,
        mime_type: str | None,
        client_id: str,
        chunk_size: int | None = None,
    ) -> list[Document]:
        chunks = split_documents(
            documents,
            chunk_size=chunk_size or self._vector_config.chunk_size,
            chunk_overlap=self._vector_config.chunk_overlap,
        )
        uploaded_at = datetime.now(UTC).isoformat()
        for chunk in chunks:
            chunk.metadata.update(
                filename=filename,
                original_filename=original_filename,
                uploaded_at=uploaded_at,
                mime_type=mime_type,
                client_id=client_id,
            )
        return chunks

    async def _get_store(self, client_id: str) -> FAISS | None:
        key = _cache_key(client_id)
        store = self._cache.get(key)
        if store is None:
            store = await load_index(
                self._vector_config.client_index_dir(client_id), self._embeddings
            )
            if store is not None:
                self._cache.put(key, store)
        return store

    async def _add_unlocked(self, client_id: str, documents: list[Document]) -> None:
        store = await add_to_index(
            await self._get_store(client_id), documents, self._embeddings
        )
        await save_index(store, self._vector_config.client_index_dir(client_id))
        self._cache.put(_cache_key(client_id), store)


def _scan_files(directory: Path) -> list[StoredFileInfo]:
    if not directory.is_dir():
        return []
    files = []
    for path in directory.iterdir():
        if not path.is_file():
            continue
        stat = path.stat()
        files.append(
            StoredFileInfo(
                filename=path.name,
                size=stat.st_size,
                type=path.suffix.lstrip(".").lower() or "unknown",
                created_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
            )
        )
    return sorted(files, key=lambda info: info.created_at, reverse=True)
