"""Session and message API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CreateSessionRequest(BaseModel):
    """Request to create a new chat session."""

    role_name: str | None = Field(default=None, max_length=255)
    system_prompt: str | None = None


class UpdateSessionRequest(BaseModel):
    """Request to update a session. Only these fields are writable."""

    role_name: str | None = Field(default=None, max_length=255)
    system_prompt: str | None = None


class SessionResponse(BaseModel):
    """Single chat session."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    session_id: str
    role_name: str | None = None
    system_prompt: str | None = None
    created_at: datetime
    updated_at: datetime


class SessionSummaryResponse(SessionResponse):
    """Session entry in the list response."""

    first_message: str | None = None
    last_message: str | None = None
    message_count: int = 0


class SessionListResponse(BaseModel):
    """All sessions of the calling client."""

    model_config = ConfigDict(frozen=True)

    sessions: list[SessionSummaryResponse]


class MessageResponse(BaseModel):
    """Single message within a session."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    role: str
    content: str
    reasoning: str | None = None
    search_context: str | None = None
    sources: str | None = None
    temp_files: str | None = None
    created_at: datetime


class TempFileInfo(BaseModel):
    """Active temporary file attached to a session."""

    model_config = ConfigDict(frozen=True)

    filename: str
    type: str
    size: int
    created_at: datetime


class Pagination(BaseModel):
    """Page metadata for message listings."""

    model_config = ConfigDict(frozen=True)

    total: int
    page: int
    page_size: int
    has_more: bool


class SessionMessagesResponse(BaseModel):
    """One page of a session's messages plus its active temp files."""

    model_config = ConfigDict(frozen=True)

    session: SessionResponse
    messages: list[MessageResponse]
    pagination: Pagination
    temp_files: list[TempFileInfo] = Field(default_factory=list)
