"""Chat turn orchestration: retrieve, prompt, stream, persist."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import aclosing

import structlog
from langchain_core.messages import BaseMessage
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ragchat.core.settings import RetrievalConfig
from ragchat.models.chat_session import ChatSession
from ragchat.repositories.chat_repo import ChatRepository
from ragchat.schemas.chat_schema import ChatRequest, StreamEvent
from ragchat.services.history import build_history
from ragchat.services.model_invoker import sources_event, stream_model_events
from ragchat.services.model_registry import ModelRegistry
from ragchat.services.persistence import CompletedTurn, TurnPersister
from ragchat.services.prompt_builder import build_prompt
from ragchat.services.retrieval import (
    ContextAggregator,
    RetrievalContext,
    RetrievalFlags,
)
from ragchat.services.temp_document_service import describe_temp_files

logger = structlog.get_logger()


class ChatService:
    """Runs one retrieval-augmented chat turn as a stream of events.

    Event order is: status events, then content/reasoning in model emission
    order, then at most one sources event. The turn is persisted only after
    the last event was handed to the consumer. A set ``cancel_event`` or a
    consumer that closes the stream ends the turn without persisting.
    """

    def __init__(
        self,
        registry: ModelRegistry,
        aggregator: ContextAggregator,
        persister: TurnPersister,
        session_factory: async_sessionmaker[AsyncSession],
        retrieval_config: RetrievalConfig,
    ) -> None:
        self._registry = registry
        self._aggregator = aggregator
        self._persister = persister
        self._session_factory = session_factory
        self._retrieval_config = retrieval_config

    async def stream_turn(
        self,
        request: ChatRequest,
        session: ChatSession,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Stream a turn for ``request`` in an existing ``session``.

        Raises:
            ModelNotConfiguredError: ``request.model_id`` is not registered.
        """
        model = self._registry.resolve(request.model_id)
        session_id, client_id = session.session_id, session.client_id
        log = logger.bind(session_id=session_id, model_id=request.model_id)

        history = await self._load_history(session_id, client_id)

        flags = RetrievalFlags(
            temp_doc=request.use_temp_doc_search,
            web=request.use_web_search,
            vector=request.use_vector_search,
        )
        context = RetrievalContext()
        async with aclosing(
            self._aggregator.collect(
                request.message, session_id, client_id, flags, context
            )
        ) as statuses:
            async for event in statuses:
                if _is_cancelled(cancel_event):
                    log.info("Chat turn cancelled during retrieval")
                    return
                yield event

        messages = build_prompt(
            session.system_prompt, history, context.search_context, request.message
        )

        content_parts: list[str] = []
        reasoning_parts: list[str] = []
        async with aclosing(stream_model_events(model, messages)) as tokens:
            async for event in tokens:
                if _is_cancelled(cancel_event):
                    log.info("Chat turn cancelled during generation")
                    return
                if event.type == "content":
                    content_parts.append(event.content)
                else:
                    reasoning_parts.append(event.content)
                yield event

        trailing = sources_event(context.sources)
        if trailing is not None:
            yield trailing

        if _is_cancelled(cancel_event):
            log.info("Chat turn cancelled before persistence")
            return

        await self._persister.persist(
            CompletedTurn(
                session_id=session_id,
                client_id=client_id,
                user_content=request.message,
                assistant_content="".join(content_parts),
                reasoning="".join(reasoning_parts),
                sources=context.sources,
                search_context=context.search_context,
                used_temp_doc_search=flags.temp_doc,
                temp_files=describe_temp_files(context.temp_files),
                temp_file_ids=tuple(temp_file.id for temp_file in context.temp_files),
            )
        )
        log.info(
            "Chat turn completed",
            content_length=sum(len(part) for part in content_parts),
            sources=len(context.sources),
        )

    async def _load_history(
        self, session_id: str, client_id: str
    ) -> list[BaseMessage]:
        async with self._session_factory() as db:
            rows = await ChatRepository(db).find_messages(session_id, client_id)
        return build_history(rows, k=self._retrieval_config.history_window)


def _is_cancelled(cancel_event: asyncio.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()
