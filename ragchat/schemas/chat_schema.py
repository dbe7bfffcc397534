"""Chat request, stream event and model schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SourceType = Literal["web", "vector", "temp"]
StreamEventType = Literal["status", "content", "reasoning", "sources", "error"]


class ChatRequest(BaseModel):
    """Chat stream request schema."""

    message: str = Field(..., min_length=1, max_length=20000)
    session_id: str | None = None
    use_web_search: bool = False
    use_vector_search: bool = False
    use_temp_doc_search: bool = False
    model_id: str | None = None


class Source(BaseModel):
    """Citation attached to an assistant answer."""

    model_config = ConfigDict(frozen=True)

    type: SourceType
    url: str


class StreamEvent(BaseModel):
    """Server-Sent Event payload for streaming responses."""

    type: StreamEventType
    content: str


class ModelInfo(BaseModel):
    """Configured model entry exposed to clients."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    model_name: str


class ModelListResponse(BaseModel):
    """Available models and the deployment default."""

    models: list[ModelInfo]
    default_model_id: str


class GeneratePromptRequest(BaseModel):
    """Request to generate a system prompt for a role."""

    role_name: str = Field(..., min_length=1, max_length=255)
    model_id: str | None = None


class GeneratePromptResponse(BaseModel):
    """Generated system prompt."""

    system_prompt: str
