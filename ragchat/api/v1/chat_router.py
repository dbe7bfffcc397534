"""Chat API router: streaming turns, models and prompt generation."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import aclosing
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from ragchat.api.v1.sse import DONE_MARKER, SSE_HEADERS, sse_event
from ragchat.core.config import settings
from ragchat.core.exceptions import AppException
from ragchat.core.rate_limit import limiter
from ragchat.dependencies import (
    get_chat_service,
    get_model_registry,
    get_prompt_service,
    get_session_service,
)
from ragchat.models.chat_session import ChatSession
from ragchat.schemas.chat_schema import (
    ChatRequest,
    GeneratePromptRequest,
    GeneratePromptResponse,
    ModelListResponse,
    StreamEvent,
)
from ragchat.schemas.response_schema import ApiResponse, success_response
from ragchat.services.chat_service import ChatService
from ragchat.services.model_registry import ModelRegistry
from ragchat.services.prompt_service import PromptService
from ragchat.services.session_service import SessionService

logger = structlog.get_logger()

router = APIRouter(prefix=f"{settings.server.api_prefix}/chat", tags=["chat"])

ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]
RegistryDep = Annotated[ModelRegistry, Depends(get_model_registry)]
PromptServiceDep = Annotated[PromptService, Depends(get_prompt_service)]


async def event_generator(
    request: Request,
    chat_service: ChatService,
    body: ChatRequest,
    chat_session: ChatSession,
) -> AsyncGenerator[str, None]:
    """Generate Server-Sent Events for one chat turn.

    Errors become an ``error`` event; the stream always ends with the
    ``[DONE]`` marker unless the client went away.
    """
    cancel_event = asyncio.Event()
    try:
        async with aclosing(
            chat_service.stream_turn(body, chat_session, cancel_event)
        ) as events:
            async for event in events:
                if await request.is_disconnected():
                    cancel_event.set()
                    logger.info(
                        "Client disconnected, cancelling turn",
                        session_id=chat_session.session_id,
                    )
                    return
                yield sse_event(event)
    except AppException as exc:
        logger.warning("Chat turn failed", code=exc.code, message=exc.message)
        yield sse_event(StreamEvent(type="error", content=exc.message))
    except Exception:
        logger.exception("Chat turn failed", session_id=chat_session.session_id)
        yield sse_event(StreamEvent(type="error", content="Internal server error"))
    yield DONE_MARKER


@router.post("/stream")
@limiter.limit(settings.server.chat_rate_limit)
async def stream_chat(
    request: Request,
    body: ChatRequest,
    chat_service: ChatServiceDep,
    session_service: SessionServiceDep,
    registry: RegistryDep,
) -> StreamingResponse:
    """Stream a chat turn as Server-Sent Events.

    Unknown sessions and models are rejected before the stream opens. A new
    session's id is returned in the ``X-Session-Id`` header.
    """
    registry.resolve(body.model_id)
    chat_session, is_new = await session_service.get_or_create(body.session_id)
    return StreamingResponse(
        event_generator(request, chat_service, body, chat_session),
        media_type="text/event-stream",
        headers={
            **SSE_HEADERS,
            "X-Session-Id": chat_session.session_id,
            "X-New-Session": "true" if is_new else "false",
        },
    )


@router.get("/models", response_model=ApiResponse[ModelListResponse])
async def list_models(registry: RegistryDep) -> dict:
    """List the configured chat models."""
    return success_response(
        ModelListResponse(
            models=registry.describe(),
            default_model_id=registry.default_model_id,
        )
    )


@router.post("/generate-prompt", response_model=ApiResponse[GeneratePromptResponse])
async def generate_prompt(
    body: GeneratePromptRequest,
    prompt_service: PromptServiceDep,
) -> dict:
    """Generate a system prompt for a role name."""
    system_prompt = await prompt_service.generate_system_prompt(
        body.role_name, body.model_id
    )
    return success_response(GeneratePromptResponse(system_prompt=system_prompt))


@router.delete("/messages/{message_id}", response_model=ApiResponse[None])
async def delete_message(message_id: int, session_service: SessionServiceDep) -> dict:
    """Delete a single message owned by the client."""
    await session_service.delete_message(message_id)
    return success_response(None, message="Message deleted")
