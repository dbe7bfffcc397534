"""Knowledge-base and temporary document schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ragchat.schemas.session_schema import TempFileInfo


class StoredFileInfo(BaseModel):
    """Knowledge-base file stored for a client."""

    model_config = ConfigDict(frozen=True)

    filename: str
    size: int
    type: str
    created_at: datetime


class KnowledgeBaseUploadResponse(BaseModel):
    """Result of indexing an uploaded knowledge-base file."""

    filename: str
    chunks: int


class RawDocument(BaseModel):
    """Text plus optional metadata."""

    content: str = Field(..., min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)


class AddDocumentsRequest(BaseModel):
    """Raw text documents to index into the client's knowledge base."""

    documents: list[RawDocument] = Field(..., min_length=1)


class DocumentSearchResult(BaseModel):
    """Knowledge-base search hit."""

    model_config = ConfigDict(frozen=True)

    content: str
    metadata: dict[str, Any]


class TempUploadResponse(BaseModel):
    """Result of a session temporary upload."""

    is_short_document: bool
    temp_files: list[TempFileInfo]
