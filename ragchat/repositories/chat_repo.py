"""Chat repository for session and message database operations."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ragchat.models.chat_message import ChatMessage
from ragchat.models.chat_session import ChatSession


@dataclass(frozen=True)
class SessionSummary:
    """Immutable result object for session list queries."""

    id: int
    session_id: str
    role_name: str | None
    system_prompt: str | None
    first_message: str | None
    last_message: str | None
    message_count: int
    created_at: datetime
    updated_at: datetime


class ChatRepository:
    """Encapsulates chat session and message database queries.

    Every lookup is scoped by ``client_id`` so one client can never read or
    modify another client's rows.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # --- Sessions ---

    async def find_session(self, session_id: str, client_id: str) -> ChatSession | None:
        """Find a chat session by its public id for the given client."""
        result = await self._session.execute(
            select(ChatSession).where(
                and_(
                    ChatSession.session_id == session_id,
                    ChatSession.client_id == client_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def create_session(
        self,
        client_id: str,
        session_id: str,
        role_name: str | None = None,
        system_prompt: str | None = None,
    ) -> ChatSession:
        """Create a new chat session."""
        chat_session = ChatSession(
            session_id=session_id,
            client_id=client_id,
            role_name=role_name,
            system_prompt=system_prompt,
        )
        self._session.add(chat_session)
        await self._session.flush()
        await self._session.refresh(chat_session)
        return chat_session

    async def list_sessions(self, client_id: str) -> list[SessionSummary]:
        """Fetch the client's sessions, newest first, with message previews."""
        # Correlated scalar subqueries: first/last message content and count
        first_subq = (
            select(ChatMessage.content)
            .where(ChatMessage.session_id == ChatSession.session_id)
            .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
            .limit(1)
            .correlate(ChatSession)
            .scalar_subquery()
        )
        last_subq = (
            select(ChatMessage.content)
            .where(ChatMessage.session_id == ChatSession.session_id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .limit(1)
            .correlate(ChatSession)
            .scalar_subquery()
        )
        count_subq = (
            select(func.count(ChatMessage.id))
            .where(ChatMessage.session_id == ChatSession.session_id)
            .correlate(ChatSession)
            .scalar_subquery()
        )

        stmt = (
            select(
                ChatSession.id,
                ChatSession.session_id,
                ChatSession.role_name,
                ChatSession.system_prompt,
                first_subq.label("first_message"),
                last_subq.label("last_message"),
                count_subq.label("message_count"),
                ChatSession.created_at,
                ChatSession.updated_at,
            )
            .where(ChatSession.client_id == client_id)
            .order_by(ChatSession.created_at.desc(), ChatSession.id.desc())
        )

        result = await self._session.execute(stmt)
        return [
            SessionSummary(
                id=row.id,
                session_id=row.session_id,
                role_name=row.role_name,
                system_prompt=row.system_prompt,
                first_message=row.first_message,
                last_message=row.last_message,
                message_count=row.message_count or 0,
                created_at=row.created_at,
                updated_at=row.updated_at,
            )
            for row in result
        ]

    async def update_session(
        self, session_id: str, client_id: str, values: dict[str, Any]
    ) -> None:
        """Update columns of an existing session."""
        await self._session.execute(
            update(ChatSession)
            .where(
                and_(
                    ChatSession.session_id == session_id,
                    ChatSession.client_id == client_id,
                )
            )
            .values(**values)
        )

    async def delete_session(self, session_id: str, client_id: str) -> None:
        """Hard-delete a session and all of its messages."""
        await self._session.execute(
            delete(ChatMessage).where(
                and_(
                    ChatMessage.session_id == session_id,
                    ChatMessage.client_id == client_id,
                )
            )
        )
        await self._session.execute(
            delete(ChatSession).where(
                and_(
                    ChatSession.session_id == session_id,
                    ChatSession.client_id == client_id,
                )
            )
        )

    # --- Messages ---

    async def find_messages(self, session_id: str, client_id: str) -> list[ChatMessage]:
        """Retrieve all messages for a session in chronological order."""
        result = await self._session.execute(
            select(ChatMessage)
            .where(
                and_(
                    ChatMessage.session_id == session_id,
                    ChatMessage.client_id == client_id,
                )
            )
            .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
        )
        return list(result.scalars().all())

    async def count_messages(self, session_id: str, client_id: str) -> int:
        """Count the messages of a session."""
        result = await self._session.execute(
            select(func.count(ChatMessage.id)).where(
                and_(
                    ChatMessage.session_id == session_id,
                    ChatMessage.client_id == client_id,
                )
            )
        )
        return result.scalar_one()

    async def find_messages_page(
        self,
        session_id: str,
        client_id: str,
        page: int,
        page_size: int,
    ) -> list[ChatMessage]:
        """Fetch one page of messages counted from the newest.

        Page 1 holds the latest ``page_size`` messages. The returned page is
        in chronological order.
        """
        result = await self._session.execute(
            select(ChatMessage)
            .where(
                and_(
                    ChatMessage.session_id == session_id,
                    ChatMessage.client_id == client_id,
                )
            )
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(reversed(result.scalars().all()))

    async def create_message(
        self,
        session_id: str,
        client_id: str,
        role: str,
        content: str,
        created_at: datetime,
        reasoning: str | None = None,
        search_context: str | None = None,
        sources: str | None = None,
        temp_files: str | None = None,
    ) -> ChatMessage:
        """Create a single chat message."""
        message = ChatMessage(
            session_id=session_id,
            client_id=client_id,
            role=role,
            content=content,
            reasoning=reasoning,
            search_context=search_context,
            sources=sources,
            temp_files=temp_files,
            created_at=created_at,
        )
        self._session.add(message)
        await self._session.flush()
        await self._session.refresh(message)
        return message

    async def find_message(self, message_id: int, client_id: str) -> ChatMessage | None:
        """Find a chat message by primary key for the given client."""
        result = await self._session.execute(
            select(ChatMessage).where(
                and_(
                    ChatMessage.id == message_id,
                    ChatMessage.client_id == client_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def delete_message(self, message_id: int) -> None:
        """Hard-delete a single message."""
        await self._session.execute(
            delete(ChatMessage).where(ChatMessage.id == message_id)
        )
