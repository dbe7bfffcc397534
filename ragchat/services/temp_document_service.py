"""Session-scoped temporary documents with a short-document fast path."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import structlog
from langchain_community.vectorstores import FAISS
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ragchat.core.exceptions import DocumentProcessingError
from ragchat.core.settings import FileUploadConfig, RetrievalConfig, VectorStoreConfig
from ragchat.models.session_temp_file import SessionTempFile
from ragchat.repositories.temp_file_repo import TempFileRepository
from ragchat.schemas.document_schema import TempUploadResponse
from ragchat.schemas.session_schema import TempFileInfo
from ragchat.services.document_loader import load_documents
from ragchat.services.file_storage import (
    IncomingFile,
    available_path,
    remove_path,
    validate_upload,
    write_file,
)
from ragchat.services.locks import KeyedLocks, session_key
from ragchat.services.vector_index import (
    add_to_index,
    load_index,
    save_index,
    split_documents,
)
from ragchat.services.vector_store_cache import VectorStoreCache

logger = structlog.get_logger()


def _cache_key(session_id: str, client_id: str) -> str:
    return f"temp:{session_key(session_id, client_id)}"


@dataclass(frozen=True)
class TempRetrieval:
    """Active temp files seen by one retrieval, plus hits from an indexed one."""

    files: list[SessionTempFile]
    documents: list[Document] = field(default_factory=list)


def describe_temp_files(files: Sequence[SessionTempFile]) -> list[TempFileInfo]:
    """Public view of temp file rows."""
    return [
        TempFileInfo(
            filename=temp_file.original_filename,
            type=Path(temp_file.original_filename).suffix.lstrip(".") or "unknown",
            size=temp_file.size,
            created_at=temp_file.created_at,
        )
        for temp_file in files
    ]


class TempDocumentService:
    """Owns the single active temporary document of each session.

    Documents up to ``short_document_threshold`` extracted characters are
    stored inline on the database row and never embedded. Longer documents
    are chunked into a per-session FAISS index. A per-session lock
    serialises upload, search and cleanup of the same session.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        embeddings: Embeddings,
        cache: VectorStoreCache,
        locks: KeyedLocks,
        vector_config: VectorStoreConfig,
        upload_config: FileUploadConfig,
        retrieval_config: RetrievalConfig,
    ) -> None:
        self._session_factory = session_factory
        self._embeddings = embeddings
        self._cache = cache
        self._locks = locks
        self._vector_config = vector_config
        self._upload_config = upload_config
        self._retrieval_config = retrieval_config

    async def upload(
        self,
        file: IncomingFile,
        session_id: str,
        client_id: str,
        chunk_size: int | None = None,
    ) -> TempUploadResponse:
        """Replace the session's temporary document with ``file``.

        Raises:
            UnsupportedFileTypeError: Extension not allowed.
            FileTooLargeError: File over the size limit.
            DocumentProcessingError: Extraction or indexing failed. The stored
                file is removed before raising.
        """
        validate_upload(file, self._upload_config)

        async with self._locks.get(session_key(session_id, client_id)):
            await self._purge_unlocked(session_id, client_id)

            session_dir = self._upload_config.session_temp_dir(session_id, client_id)
            path = available_path(session_dir, file.basename)
            await write_file(path, file.content)
            logger.info(
                "Temporary file saved",
                session_id=session_id,
                filename=path.name,
                size=file.size,
            )

            try:
                is_short = await self._process(
                    path, file, session_id, client_id, chunk_size
                )
            except Exception as exc:
                logger.exception(
                    "Failed to process temporary file",
                    session_id=session_id,
                    filename=path.name,
                )
                await remove_path(path)
                await remove_path(
                    self._vector_config.session_index_dir(session_id, client_id)
                )
                self._cache.discard(_cache_key(session_id, client_id))
                raise DocumentProcessingError() from exc

        return TempUploadResponse(
            is_short_document=is_short,
            temp_files=await self.list_documents(session_id, client_id),
        )

    async def _process(
        self,
        path: Path,
        file: IncomingFile,
        session_id: str,
        client_id: str,
        chunk_size: int | None,
    ) -> bool:
        documents = await load_documents(path, file.mime_type)
        total_length = sum(len(doc.page_content) for doc in documents)
        threshold = self._retrieval_config.short_document_threshold
        is_short = total_length <= threshold

        full_content: str | None = None
        if is_short:
            full_content = "\n\n".join(doc.page_content for doc in documents)
            logger.info(
                "Short document, skipping vector indexing",
                length=total_length,
                threshold=threshold,
            )
        else:
            chunks = split_documents(
                documents,
                chunk_size=chunk_size or self._vector_config.chunk_size,
                chunk_overlap=self._vector_config.chunk_overlap,
            )
            uploaded_at = datetime.now(UTC).isoformat()
            for chunk in chunks:
                chunk.metadata.update(
                    filename=path.name,
                    original_filename=file.basename,
                    uploaded_at=uploaded_at,
                    mime_type=file.mime_type,
                    session_id=session_id,
                    client_id=client_id,
                )
            store = await add_to_index(None, chunks, self._embeddings)
            await save_index(
                store, self._vector_config.session_index_dir(session_id, client_id)
            )
            self._cache.put(_cache_key(session_id, client_id), store)
            logger.info(
                "Temporary document indexed", length=total_length, chunks=len(chunks)
            )

        async with self._session_factory() as db:
            await TempFileRepository(db).create(
                filename=path.name,
                original_filename=file.basename,
                mime_type=file.mime_type,
                size=file.size,
                path=str(path),
                session_id=session_id,
                client_id=client_id,
                is_short_document=is_short,
                full_content=full_content,
            )
            await db.commit()
        return is_short

    async def active_files(self, session_id: str, client_id: str) -> list[SessionTempFile]:
        """Non-deleted temp file rows of a session."""
        async with self._session_factory() as db:
            return await TempFileRepository(db).find_active(session_id, client_id)

    async def list_documents(self, session_id: str, client_id: str) -> list[TempFileInfo]:
        """Public view of the session's active temp files."""
        return describe_temp_files(await self.active_files(session_id, client_id))

    async def retrieve(self, query: str, session_id: str, client_id: str) -> TempRetrieval:
        """Read the active temp files and, for an indexed one, search it.

        Row lookup and search happen under one acquisition of the session
        lock, so a concurrent upload is either fully visible or not at all.
        Short documents are returned as rows only; their ``full_content``
        is the context.
        """
        async with self._locks.get(session_key(session_id, client_id)):
            files = await self.active_files(session_id, client_id)
            if not files or any(temp_file.is_short_document for temp_file in files):
                return TempRetrieval(files=files)
            documents = await self._search_unlocked(
                query, session_id, client_id, self._retrieval_config.temp_search_k
            )
        return TempRetrieval(files=files, documents=documents)

    async def search(
        self,
        query: str,
        session_id: str,
        client_id: str,
        k: int | None = None,
    ) -> list[Document]:
        """Similarity search over the session's indexed temporary document."""
        async with self._locks.get(session_key(session_id, client_id)):
            return await self._search_unlocked(
                query, session_id, client_id, k or self._retrieval_config.temp_search_k
            )

    async def _search_unlocked(
        self, query: str, session_id: str, client_id: str, k: int
    ) -> list[Document]:
        store = await self._get_store(session_id, client_id)
        if store is None:
            return []
        return await store.asimilarity_search(query, k=k)

    async def cleanup_session(self, session_id: str, client_id: str) -> None:
        """Soft-delete the session's temp files and remove their artifacts."""
        async with self._locks.get(session_key(session_id, client_id)):
            deleted = await self._purge_unlocked(session_id, client_id)
        logger.info(
            "Temporary documents cleaned up", session_id=session_id, rows=deleted
        )

    async def discard(
        self,
        session_id: str,
        client_id: str,
        repository: TempFileRepository,
        file_ids: Sequence[int] | None = None,
    ) -> int:
        """Soft-delete temp file rows inside the caller's transaction.

        Only rows in ``file_ids`` are touched when given, so a document
        uploaded after they were read survives. Files on disk are left alone:
        call :meth:`release_artifacts` once the caller has committed.

        Returns the number of rows marked deleted.
        """
        async with self._locks.get(session_key(session_id, client_id)):
            if file_ids is None:
                deleted = await repository.soft_delete_for_session(session_id, client_id)
            else:
                deleted = await repository.soft_delete_ids(session_id, client_id, file_ids)
        logger.info(
            "Temporary documents discarded", session_id=session_id, rows=deleted
        )
        return deleted

    async def release_artifacts(self, session_id: str, client_id: str) -> bool:
        """Remove stored files and the index once no active row needs them.

        Returns False when a newer upload is active; its own purge already
        removed the older artifacts.
        """
        async with self._locks.get(session_key(session_id, client_id)):
            if await self.active_files(session_id, client_id):
                return False
            await self._remove_artifacts(session_id, client_id)
        return True

    async def _purge_unlocked(self, session_id: str, client_id: str) -> int:
        async with self._session_factory() as db:
            deleted = await TempFileRepository(db).soft_delete_for_session(
                session_id, client_id
            )
            await db.commit()
        await self._remove_artifacts(session_id, client_id)
        return deleted

    async def _remove_artifacts(self, session_id: str, client_id: str) -> None:
        self._cache.discard(_cache_key(session_id, client_id))
        await remove_path(self._upload_config.session_temp_dir(session_id, client_id))
        await remove_path(self._vector_config.session_index_dir(session_id, client_id))

    async def _get_store(self, session_id: str, client_id: str) -> FAISS | None:
        key = _cache_key(session_id, client_id)
        store = self._cache.get(key)
        if store is None:
            store = await load_index(
                self._vector_config.session_index_dir(session_id, client_id),
                self._embeddings,
            )
            if store is not None:
                self._cache.put(key, store)
        return store
