"""Streaming model invocation split into content and reasoning events."""

import json
from collections.abc import AsyncIterator, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, BaseMessageChunk

from ragchat.schemas.chat_schema import Source, StreamEvent


def dedupe_sources(sources: list[Source]) -> list[Source]:
    """Drop repeated (type, url) pairs, keeping the first occurrence."""
    seen: set[tuple[str, str]] = set()
    unique: list[Source] = []
    for source in sources:
        key = (source.type, source.url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(source)
    return unique


def chunk_events(chunk: BaseMessageChunk) -> list[StreamEvent]:
    """Demultiplex one streamed chunk, preserving in-chunk order.

    Reasoning arrives either as ``additional_kwargs["reasoning_content"]``
    (DeepSeek-style endpoints) or as ``thinking`` content blocks (Anthropic).
    """
    events: list[StreamEvent] = []
    content = chunk.content
    if isinstance(content, str):
        if content:
            events.append(StreamEvent(type="content", content=content))
    else:
        for block in content:
            if isinstance(block, str):
                if block:
                    events.append(StreamEvent(type="content", content=block))
                continue
            block_type = block.get("type")
            if block_type == "text" and block.get("text"):
                events.append(StreamEvent(type="content", content=block["text"]))
            elif block_type == "thinking" and block.get("thinking"):
                events.append(StreamEvent(type="reasoning", content=block["thinking"]))

    reasoning = chunk.additional_kwargs.get("reasoning_content")
    if reasoning:
        events.append(StreamEvent(type="reasoning", content=str(reasoning)))
    return events


async def stream_model_events(
    model: BaseChatModel, messages: Sequence[BaseMessage]
) -> AsyncIterator[StreamEvent]:
    """Forward content and reasoning tokens in the order the model emits them."""
    async for chunk in model.astream(list(messages)):
        for event in chunk_events(chunk):
            yield event


def serialize_sources(sources: list[Source]) -> str:
    return json.dumps(
        [source.model_dump() for source in dedupe_sources(sources)],
        ensure_ascii=False,
    )


def sources_event(sources: list[Source]) -> StreamEvent | None:
    """The trailing citations event, or None when nothing was retrieved."""
    if not sources:
        return None
    return StreamEvent(type="sources", content=serialize_sources(sources))
