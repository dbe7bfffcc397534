"""Reader documents and their streamed summary, deep-reading and mind-map analyses."""

from collections.abc import AsyncIterator
from pathlib import Path

import structlog
from langchain_core.documents import Document
from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ragchat.core.exceptions import FileNotFoundInStoreError
from ragchat.core.settings import FileUploadConfig
from ragchat.models.reading_file import ReadingFile
from ragchat.repositories.reading_file_repo import ReadingFileRepository
from ragchat.schemas.chat_schema import StreamEvent
from ragchat.schemas.reader_schema import AnalysisKind, ReadingFileInfo
from ragchat.services.document_loader import load_documents
from ragchat.services.file_storage import (
    IncomingFile,
    available_path,
    remove_path,
    timestamped_name,
    validate_upload,
    write_file,
)
from ragchat.services.model_invoker import stream_model_events

logger = structlog.get_logger()

PAGE_SEPARATOR = "\n\n-------------------\n"

SUMMARY_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are a professional document summariser. Summarise the document "
            "the user provides, covering its main topic and purpose, key "
            "arguments and findings, important data and evidence, and its "
            "conclusions or recommendations. Organise the summary with headings, "
            "lists and emphasis where they help, and keep it under a fifth of "
            "the original length.",
        ),
        ("human", "Document content:\n\n{text}"),
    ]
)

PAGE_ANALYSIS_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are an expert close reader. You receive one page of a document. "
            "First decide what kind of page it is (cover, table of contents, "
            "body, references, appendix). For auxiliary pages state the page "
            "type and basic information in one or two sentences. For body pages "
            "scale the depth of the analysis to the content: for dense pages "
            "give an overview of the page and its role in the document, explain "
            "key arguments, concepts, terms and evidence, and point out what "
            "deserves special attention; for light pages give a short overview "
            "of three to five sentences.",
        ),
        ("human", "Content of page {page}:\n\n{text}"),
    ]
)

MIND_MAP_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You turn documents into mind maps written as markdown headings. "
            "Start from one central topic (#) and branch outwards with ##, ### "
            "and #### for at most four levels. Every heading is a short keyword "
            "or phrase. Use heading syntax only: no list markers, no other "
            "markdown and no prose.",
        ),
        ("human", "Build a mind map of this document:\n\n{text}"),
    ]
)


def _describe(reading_file: ReadingFile) -> ReadingFileInfo:
    return ReadingFileInfo(
        filename=reading_file.filename,
        original_filename=reading_file.original_filename,
        type=Path(reading_file.filename).suffix.lstrip(".") or "unknown",
        size=reading_file.size,
        created_at=reading_file.created_at,
    )


class ReaderService:
    """Stores documents a client reads and streams model analyses of them.

    Each analysis is generated once per document. The completed text is
    cached on the row and replayed as a single content event afterwards; an
    analysis interrupted mid-stream is not stored.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        upload_config: FileUploadConfig,
    ) -> None:
        self._session_factory = session_factory
        self._upload_config = upload_config

    async def upload(self, file: IncomingFile, client_id: str) -> ReadingFileInfo:
        """Store ``file`` under a timestamped name.

        Raises:
            UnsupportedFileTypeError: Extension not allowed.
            FileTooLargeError: File over the size limit.
        """
        validate_upload(file, self._upload_config)
        path = available_path(
            self._upload_config.reader_client_dir(client_id),
            timestamped_name(file.basename),
        )
        await write_file(path, file.content)

        try:
            async with self._session_factory() as db:
                reading_file = await ReadingFileRepository(db).create(
                    filename=path.name,
                    original_filename=file.basename,
                    mime_type=file.mime_type,
                    size=file.size,
                    path=str(path),
                    client_id=client_id,
                )
                await db.commit()
        except Exception:
            await remove_path(path)
            raise

        logger.info("Reader file uploaded", filename=path.name, size=file.size)
        return _describe(reading_file)

    async def list_files(self, client_id: str) -> list[ReadingFileInfo]:
        async with self._session_factory() as db:
            rows = await ReadingFileRepository(db).find_all(client_id)
        return [_describe(row) for row in rows]

    async def get_file(self, filename: str, client_id: str) -> ReadingFile:
        """The client's document named ``filename``.

        Raises:
            FileNotFoundInStoreError: Unknown, deleted, foreign or missing on disk.
        """
        async with self._session_factory() as db:
            reading_file = await ReadingFileRepository(db).find(filename, client_id)
        if reading_file is None or not Path(reading_file.path).is_file():
            raise FileNotFoundInStoreError()
        return reading_file

    async def delete_file(self, filename: str, client_id: str) -> None:
        async with self._session_factory() as db:
            repo = ReadingFileRepository(db)
            reading_file = await repo.find(filename, client_id)
            if reading_file is None:
                raise FileNotFoundInStoreError()
            await repo.soft_delete(filename, client_id)
            await db.commit()
        await remove_path(Path(reading_file.path))
        logger.info("Reader file deleted", filename=filename)

    async def stream_analysis(
        self,
        reading_file: ReadingFile,
        kind: AnalysisKind,
        model: BaseChatModel,
    ) -> AsyncIterator[StreamEvent]:
        """Stream the ``kind`` analysis of ``reading_file``, generating it if needed."""
        log = logger.bind(filename=reading_file.filename, analysis=kind)
        cached: str | None = getattr(reading_file, kind)
        if cached:
            log.info("Returning stored analysis")
            yield StreamEvent(type="content", content=cached)
            return

        documents = await load_documents(Path(reading_file.path), reading_file.mime_type)
        log.info("Generating analysis", pages=len(documents))

        parts: list[str] = []
        async for event in self._generate(kind, documents, model):
            if event.type == "content":
                parts.append(event.content)
            yield event

        text = "".join(parts)
        if not text:
            log.warning("Model returned an empty analysis")
            return
        async with self._session_factory() as db:
            await ReadingFileRepository(db).save_analysis(reading_file.id, kind, text)
            await db.commit()
        log.info("Analysis stored", length=len(text))

    async def _generate(
        self,
        kind: AnalysisKind,
        documents: list[Document],
        model: BaseChatModel,
    ) -> AsyncIterator[StreamEvent]:
        if kind == "deep_reading":
            for page, document in enumerate(documents, start=1):
                if page > 1:
                    yield StreamEvent(type="content", content=PAGE_SEPARATOR)
                yield StreamEvent(type="content", content=f"\n## Page {page}\n\n")
                messages = PAGE_ANALYSIS_PROMPT.format_messages(
                    page=page, text=document.page_content
                )
                async for event in stream_model_events(model, messages):
                    yield event
            return

        template = SUMMARY_PROMPT if kind == "summary" else MIND_MAP_PROMPT
        text = "\n\n".join(document.page_content for document in documents)
        async for event in stream_model_events(model, template.format_messages(text=text)):
            yield event
