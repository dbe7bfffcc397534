"""Unit tests for streaming model invocation."""

import json

from langchain_core.messages import AIMessageChunk, HumanMessage

from ragchat.schemas.chat_schema import Source, StreamEvent
from ragchat.services.model_invoker import (
    chunk_events,
    dedupe_sources,
    serialize_sources,
    sources_event,
    stream_model_events,
)
from tests.conftest import make_streaming_model


class TestChunkEvents:
    def test_string_content(self) -> None:
        assert chunk_events(AIMessageChunk(content="Hi")) == [
            StreamEvent(type="content", content="Hi")
        ]

    def test_empty_chunk_yields_nothing(self) -> None:
        assert chunk_events(AIMessageChunk(content="")) == []

    def test_reasoning_content_kwarg(self) -> None:
        chunk = AIMessageChunk(content="", additional_kwargs={"reasoning_content": "hmm"})

        assert chunk_events(chunk) == [StreamEvent(type="reasoning", content="hmm")]

    def test_thinking_and_text_blocks_keep_order(self) -> None:
        chunk = AIMessageChunk(
            content=[
                {"type": "thinking", "thinking": "step 1"},
                {"type": "text", "text": "answer"},
            ]
        )

        assert chunk_events(chunk) == [
            StreamEvent(type="reasoning", content="step 1"),
            StreamEvent(type="content", content="answer"),
        ]

    def test_unknown_blocks_ignored(self) -> None:
        chunk = AIMessageChunk(content=[{"type": "tool_use", "id": "x", "name": "t", "input": {}}])

        assert chunk_events(chunk) == []


class TestStreamModelEvents:
    async def test_preserves_receipt_order(self) -> None:
        model = make_streaming_model(
            [
                AIMessageChunk(content="", additional_kwargs={"reasoning_content": "think "}),
                AIMessageChunk(content="", additional_kwargs={"reasoning_content": "more"}),
                AIMessageChunk(content="Hello"),
                AIMessageChunk(content=" world"),
            ]
        )
        messages = [HumanMessage(content="hi")]

        events = [event async for event in stream_model_events(model, messages)]

        assert [(e.type, e.content) for e in events] == [
            ("reasoning", "think "),
            ("reasoning", "more"),
            ("content", "Hello"),
            ("content", " world"),
        ]
        model.astream.assert_called_once_with(messages)


class TestSources:
    def test_dedupe_keeps_first_occurrence(self) -> None:
        sources = [
            Source(type="web", url="https://a"),
            Source(type="vector", url="kb.pdf"),
            Source(type="web", url="https://a"),
            Source(type="vector", url="https://a"),
        ]

        assert dedupe_sources(sources) == [
            Source(type="web", url="https://a"),
            Source(type="vector", url="kb.pdf"),
            Source(type="vector", url="https://a"),
        ]

    def test_serialize_sources(self) -> None:
        payload = serialize_sources(
            [Source(type="temp", url="보고서.pdf"), Source(type="temp", url="보고서.pdf")]
        )

        assert "보고서" in payload
        assert json.loads(payload) == [{"type": "temp", "url": "보고서.pdf"}]

    def test_sources_event(self) -> None:
        event = sources_event([Source(type="web", url="https://a")])

        assert event is not None
        assert event.type == "sources"
        assert json.loads(event.content) == [{"type": "web", "url": "https://a"}]

    def test_no_sources_no_event(self) -> None:
        assert sources_event([]) is None
