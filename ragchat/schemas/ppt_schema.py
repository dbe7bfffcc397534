"""Presentation generation schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PptOperationType = Literal["outline", "content"]


class GenerateOutlineRequest(BaseModel):
    """Request an outline for a presentation topic."""

    title: str = Field(..., min_length=1, max_length=500)
    ppt_id: str | None = Field(default=None, max_length=36)


class GenerateContentRequest(BaseModel):
    """Request slide content for a topic and its outline."""

    title: str = Field(..., min_length=1, max_length=500)
    outline: str = Field(..., min_length=1)
    ppt_id: str | None = Field(default=None, max_length=36)


class OutlineResponse(BaseModel):
    outline: str
    operation_id: int
    ppt_id: str


class ContentResponse(BaseModel):
    content: str
    operation_id: int
    ppt_id: str


class PptOperationResponse(BaseModel):
    """Logged presentation operation."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    ppt_id: str
    type: PptOperationType
    title: str | None = None
    outline: str | None = None
    content: str | None = None
    is_completed: bool
    error: str | None = None
    created_at: datetime
    updated_at: datetime
