"""Write-once persistence of a completed chat turn."""

import json
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ragchat.models.chat_message import ChatMessage
from ragchat.repositories.chat_repo import ChatRepository
from ragchat.repositories.temp_file_repo import TempFileRepository
from ragchat.schemas.chat_schema import Source
from ragchat.schemas.session_schema import TempFileInfo
from ragchat.services.model_invoker import serialize_sources
from ragchat.services.temp_document_service import TempDocumentService

logger = structlog.get_logger()

LEADING_BLANK_LINE = "\n\n"


def strip_leading_blank_line(content: str) -> str:
    """Remove one leading blank line some reasoning models prepend to answers."""
    if content.startswith(LEADING_BLANK_LINE):
        return content[len(LEADING_BLANK_LINE):]
    return content


@dataclass(frozen=True)
class CompletedTurn:
    """Everything a finished turn needs to persist.

    ``temp_file_ids`` are the temporary document rows the turn's context was
    built from.
    """

    session_id: str
    client_id: str
    user_content: str
    assistant_content: str
    reasoning: str
    sources: list[Source]
    search_context: str
    used_temp_doc_search: bool
    temp_files: list[TempFileInfo] | None = None
    temp_file_ids: tuple[int, ...] = ()


class TurnPersister:
    """Stores the user and assistant messages of a turn in one transaction.

    When temporary-document search was used, the temp documents the turn
    read are soft-deleted between the two writes and their files removed
    after the commit. A cleanup failure is logged and the turn is still
    saved; a rolled back turn leaves the documents untouched.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        temp_documents: TempDocumentService,
    ) -> None:
        self._session_factory = session_factory
        self._temp_documents = temp_documents

    async def persist(self, turn: CompletedTurn) -> tuple[ChatMessage, ChatMessage]:
        discarded = 0
        async with self._session_factory() as db:
            repo = ChatRepository(db)
            try:
                user_created_at = datetime.now(UTC)
                user_message = await repo.create_message(
                    session_id=turn.session_id,
                    client_id=turn.client_id,
                    role="user",
                    content=turn.user_content,
                    created_at=user_created_at,
                    **self._temp_doc_fields(turn),
                )

                if turn.used_temp_doc_search and turn.temp_file_ids:
                    discarded = await self._discard(turn, TempFileRepository(db))

                # Strictly after the user row even on coarse clocks.
                assistant_created_at = max(
                    datetime.now(UTC), user_created_at + timedelta(microseconds=1)
                )
                assistant_message = await repo.create_message(
                    session_id=turn.session_id,
                    client_id=turn.client_id,
                    role="assistant",
                    content=strip_leading_blank_line(turn.assistant_content),
                    created_at=assistant_created_at,
                    reasoning=turn.reasoning or None,
                    sources=serialize_sources(turn.sources),
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        if discarded:
            await self._release(turn)

        logger.info(
            "Chat turn persisted",
            session_id=turn.session_id,
            user_message_id=user_message.id,
            assistant_message_id=assistant_message.id,
        )
        return user_message, assistant_message

    @staticmethod
    def _temp_doc_fields(turn: CompletedTurn) -> dict[str, str | None]:
        if not turn.used_temp_doc_search:
            return {}
        files = [info.model_dump(mode="json") for info in turn.temp_files or []]
        return {
            "temp_files": json.dumps(files, ensure_ascii=False),
            "search_context": turn.search_context or None,
        }

    async def _discard(self, turn: CompletedTurn, repository: TempFileRepository) -> int:
        try:
            return await self._temp_documents.discard(
                turn.session_id,
                turn.client_id,
                repository,
                file_ids=turn.temp_file_ids,
            )
        except Exception:
            logger.exception(
                "Temporary document cleanup failed",
                session_id=turn.session_id,
            )
            return 0

    async def _release(self, turn: CompletedTurn) -> None:
        try:
            await self._temp_documents.release_artifacts(turn.session_id, turn.client_id)
        except Exception:
            logger.exception(
                "Temporary document files not removed",
                session_id=turn.session_id,
            )
