"""Service layer for chat sessions and their messages."""

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from ragchat.core.exceptions import MessageNotFoundError, SessionNotFoundError
from ragchat.models.chat_session import ChatSession
from ragchat.repositories.chat_repo import ChatRepository
from ragchat.repositories.temp_file_repo import TempFileRepository
from ragchat.schemas.session_schema import (
    MessageResponse,
    Pagination,
    SessionListResponse,
    SessionMessagesResponse,
    SessionResponse,
    SessionSummaryResponse,
    UpdateSessionRequest,
)
from ragchat.services.temp_document_service import TempDocumentService

logger = structlog.get_logger()


class SessionService:
    """Session CRUD scoped to one client.

    Writes are committed immediately so sessions created here are visible to
    work that runs in other database sessions (the streaming turn).
    """

    def __init__(
        self,
        session: AsyncSession,
        temp_documents: TempDocumentService,
        client_id: str,
    ) -> None:
        self._session = session
        self._chat_repo = ChatRepository(session)
        self._temp_file_repo = TempFileRepository(session)
        self._temp_documents = temp_documents
        self._client_id = client_id

    async def create_session(
        self,
        role_name: str | None = None,
        system_prompt: str | None = None,
    ) -> ChatSession:
        chat_session = await self._chat_repo.create_session(
            client_id=self._client_id,
            session_id=str(uuid.uuid4()),
            role_name=role_name,
            system_prompt=system_prompt,
        )
        await self._session.commit()
        logger.info("Chat session created", session_id=chat_session.session_id)
        return chat_session

    async def get_session(self, session_id: str) -> ChatSession:
        chat_session = await self._chat_repo.find_session(session_id, self._client_id)
        if chat_session is None:
            raise SessionNotFoundError()
        return chat_session

    async def get_or_create(self, session_id: str | None) -> tuple[ChatSession, bool]:
        """Resolve the session of a chat turn, creating one when none is given.

        Returns:
            Tuple of (session, is_new_session).
        """
        if session_id:
            return await self.get_session(session_id), False
        return await self.create_session(), True

    async def list_sessions(self) -> SessionListResponse:
        rows = await self._chat_repo.list_sessions(self._client_id)
        return SessionListResponse(
            sessions=[
                SessionSummaryResponse(
                    id=row.id,
                    session_id=row.session_id,
                    role_name=row.role_name,
                    system_prompt=row.system_prompt,
                    first_message=row.first_message,
                    last_message=row.last_message,
                    message_count=row.message_count,
                    created_at=row.created_at,
                    updated_at=row.updated_at,
                )
                for row in rows
            ]
        )

    async def get_messages(
        self,
        session_id: str,
        page: int = 1,
        page_size: int = 20,
    ) -> SessionMessagesResponse:
        """Return one page of messages (page 1 is the newest) plus temp files."""
        chat_session = await self.get_session(session_id)
        total = await self._chat_repo.count_messages(session_id, self._client_id)
        messages = await self._chat_repo.find_messages_page(
            session_id, self._client_id, page=page, page_size=page_size
        )
        skipped = (page - 1) * page_size
        return SessionMessagesResponse(
            session=SessionResponse.model_validate(chat_session),
            messages=[MessageResponse.model_validate(msg) for msg in messages],
            pagination=Pagination(
                total=total,
                page=page,
                page_size=page_size,
                has_more=skipped + len(messages) < total,
            ),
            temp_files=await self._temp_documents.list_documents(
                session_id, self._client_id
            ),
        )

    async def update_session(
        self, session_id: str, request: UpdateSessionRequest
    ) -> ChatSession:
        """Update only the fields the client explicitly sent."""
        await self.get_session(session_id)
        values = request.model_dump(
            include={"role_name", "system_prompt"}, exclude_unset=True
        )
        if values:
            await self._chat_repo.update_session(session_id, self._client_id, values)
            await self._session.commit()
        chat_session = await self.get_session(session_id)
        await self._session.refresh(chat_session)
        return chat_session

    async def delete_session(self, session_id: str) -> None:
        """Soft-delete temp files, then remove messages and the session.

        Stored temp files are removed only after the commit.
        """
        await self.get_session(session_id)
        discarded = await self._temp_documents.discard(
            session_id, self._client_id, self._temp_file_repo
        )
        await self._chat_repo.delete_session(session_id, self._client_id)
        await self._session.commit()
        if discarded:
            await self._temp_documents.release_artifacts(session_id, self._client_id)
        logger.info("Chat session deleted", session_id=session_id)

    async def delete_message(self, message_id: int) -> None:
        message = await self._chat_repo.find_message(message_id, self._client_id)
        if message is None:
            raise MessageNotFoundError()
        await self._chat_repo.delete_message(message_id)
        await self._session.commit()
        logger.info("Chat message deleted", message_id=message_id)
