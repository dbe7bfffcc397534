"""Vector store configuration."""

from pathlib import Path

from pydantic import BaseModel


class VectorStoreConfig(BaseModel, frozen=True):
    """Vector store settings."""

    path: Path
    chunk_size: int
    chunk_overlap: int
    cache_size: int = 64

    def client_index_dir(self, client_id: str) -> Path:
        """FAISS index directory of a client's knowledge base."""
        return self.path / "clients" / client_id

    def session_index_dir(self, session_id: str, client_id: str) -> Path:
        """FAISS index directory of a session's temporary document."""
        return self.path / "temp" / client_id / session_id
