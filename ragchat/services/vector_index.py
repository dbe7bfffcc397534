"""FAISS index persistence helpers."""

from pathlib import Path

from langchain_community.vectorstores import FAISS
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_text_splitters import RecursiveCharacterTextSplitter
from starlette.concurrency import run_in_threadpool

INDEX_FILE = "index.faiss"


def index_exists(directory: Path) -> bool:
    return (directory / INDEX_FILE).exists()


async def load_index(directory: Path, embeddings: Embeddings) -> FAISS | None:
    """Load a persisted index, or None when nothing was saved yet."""
    if not index_exists(directory):
        return None
    # Indexes are written by this service only.
    return await run_in_threadpool(
        FAISS.load_local,
        str(directory),
        embeddings,
        allow_dangerous_deserialization=True,
    )


async def save_index(store: FAISS, directory: Path) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    await run_in_threadpool(store.save_local, str(directory))


async def add_to_index(
    store: FAISS | None, documents: list[Document], embeddings: Embeddings
) -> FAISS:
    """Append documents to ``store``, creating it on first write."""
    if store is None:
        return await FAISS.afrom_documents(documents, embeddings)
    await store.aadd_documents(documents)
    return store


def split_documents(
    documents: list[Document], chunk_size: int, chunk_overlap: int
) -> list[Document]:
    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=min(chunk_overlap, chunk_size - 1),
    )
    return splitter.split_documents(documents)
