"""Retrieval adapters and the context aggregator."""

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field

import structlog

from ragchat.models.session_temp_file import SessionTempFile
from ragchat.schemas.chat_schema import Source, StreamEvent
from ragchat.services.knowledge_base_service import KnowledgeBaseService
from ragchat.services.temp_document_service import TempDocumentService
from ragchat.tools.web_search import WebSearchResult, search_web

logger = structlog.get_logger()

WebSearch = Callable[[str], Awaitable[list[WebSearchResult]]]

TEMP_CONTENT_HEADER = "Session temporary document content:"
TEMP_RESULTS_HEADER = "Session temporary document search results:"
WEB_RESULTS_HEADER = "Web search results:"
KNOWLEDGE_BASE_HEADER = "Knowledge base search results:"


@dataclass(frozen=True)
class RetrievalResult:
    """Output of one adapter: context text, citations and a status line.

    ``temp_files`` lists the temporary document rows the context was built
    from; only those are discarded once the turn is saved.
    """

    context: str
    sources: list[Source]
    status: str
    temp_files: list[SessionTempFile] = field(default_factory=list)


@dataclass(frozen=True)
class RetrievalFlags:
    temp_doc: bool = False
    web: bool = False
    vector: bool = False


@dataclass
class RetrievalContext:
    """Accumulates the aggregated search context of one turn."""

    search_context: str = ""
    sources: list[Source] = field(default_factory=list)
    temp_files: list[SessionTempFile] = field(default_factory=list)

    def extend(self, result: RetrievalResult) -> None:
        self.search_context += result.context
        self.sources.extend(result.sources)
        self.temp_files.extend(result.temp_files)


def _source_block(source: str, content: str) -> str:
    return f"Source: {source}\nContent: {content}"


def _status(text: str) -> StreamEvent:
    return StreamEvent(type="status", content=text)


class ContextAggregator:
    """Runs the selected adapters in a fixed order and merges their output.

    Order is temp-doc, web, vector. Adapters run one after another so the
    status events arrive deterministically. A failing adapter contributes
    nothing and reports itself unavailable; it never aborts the turn.
    """

    def __init__(
        self,
        temp_documents: TempDocumentService,
        knowledge_base: KnowledgeBaseService,
        web_search: WebSearch = search_web,
    ) -> None:
        self._temp_documents = temp_documents
        self._knowledge_base = knowledge_base
        self._web_search = web_search

    async def collect(
        self,
        message: str,
        session_id: str,
        client_id: str,
        flags: RetrievalFlags,
        context: RetrievalContext,
    ) -> AsyncIterator[StreamEvent]:
        """Yield status events while filling ``context``."""
        if flags.temp_doc:
            yield _status("Searching temporary documents...")
            result = await self._guarded(
                "temp_doc",
                lambda: self.search_temp_documents(message, session_id, client_id),
                "Temporary document search unavailable",
            )
            context.extend(result)
            yield _status(result.status)

        if flags.web:
            yield _status("Searching web resources...")
            result = await self._guarded(
                "web",
                lambda: self.search_web_resources(message),
                "Web search unavailable",
            )
            context.extend(result)
            yield _status(result.status)

        if flags.vector:
            yield _status("Searching vector database...")
            result = await self._guarded(
                "vector",
                lambda: self.search_knowledge_base(message, client_id),
                "Vector database search unavailable",
            )
            context.extend(result)
            yield _status(result.status)

    async def _guarded(
        self,
        adapter: str,
        call: Callable[[], Awaitable[RetrievalResult]],
        unavailable_status: str,
    ) -> RetrievalResult:
        try:
            return await call()
        except Exception:
            logger.exception("Retrieval adapter failed", adapter=adapter)
            return RetrievalResult(context="", sources=[], status=unavailable_status)

    async def search_temp_documents(
        self, message: str, session_id: str, client_id: str
    ) -> RetrievalResult:
        """Inline short documents verbatim, otherwise search the session index."""
        retrieval = await self._temp_documents.retrieve(message, session_id, client_id)
        short_docs = [
            temp_file for temp_file in retrieval.files if temp_file.is_short_document
        ]
        if short_docs:
            blocks = "".join(
                _source_block(doc.original_filename, doc.full_content or "") + "\n\n"
                for doc in short_docs
            )
            return RetrievalResult(
                context=f"{TEMP_CONTENT_HEADER}\n{blocks}",
                sources=[Source(type="temp", url=doc.filename) for doc in short_docs],
                status=f"Found {len(short_docs)} short documents, using full content",
                temp_files=retrieval.files,
            )

        documents = retrieval.documents
        if not documents or not documents[0].page_content:
            return RetrievalResult(
                context="",
                sources=[],
                status="No temporary documents found",
                temp_files=retrieval.files,
            )

        body = "\n".join(doc.page_content for doc in documents)
        return RetrievalResult(
            context=f"{TEMP_RESULTS_HEADER}\n{body}\n\n",
            sources=[
                Source(type="temp", url=doc.metadata["filename"])
                for doc in documents
                if doc.metadata.get("filename")
            ],
            status=f"Found {len(documents)} temporary documents",
            temp_files=retrieval.files,
        )

    async def search_web_resources(self, message: str) -> RetrievalResult:
        results = await self._web_search(message)
        if not results:
            return RetrievalResult(context="", sources=[], status="No web resources found")

        body = "\n\n".join(_source_block(hit.url, hit.content) for hit in results)
        return RetrievalResult(
            context=f"{WEB_RESULTS_HEADER}\n{body}\n\n",
            sources=[Source(type="web", url=hit.url) for hit in results],
            status=f"Found {len(results)} web resources",
        )

    async def search_knowledge_base(self, message: str, client_id: str) -> RetrievalResult:
        documents = await self._knowledge_base.search(client_id, message)
        if not documents:
            return RetrievalResult(
                context="", sources=[], status="No documents found in vector database"
            )

        body = "\n\n".join(
            _source_block(doc.metadata.get("filename", "unknown"), doc.page_content)
            for doc in documents
        )
        return RetrievalResult(
            context=f"{KNOWLEDGE_BASE_HEADER}\n{body}\n\n",
            sources=[
                Source(type="vector", url=doc.metadata["filename"])
                for doc in documents
                if doc.metadata.get("filename")
            ],
            status=f"Found {len(documents)} documents in vector database",
        )
