"""Repository for session temporary file records."""

from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ragchat.models.session_temp_file import SessionTempFile


class TempFileRepository:
    """Encapsulates SessionTempFile queries. Soft-deleted rows are never returned."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_active(self, session_id: str, client_id: str) -> list[SessionTempFile]:
        """Retrieve the non-deleted temp files of a session."""
        result = await self._session.execute(
            select(SessionTempFile)
            .where(
                and_(
                    SessionTempFile.session_id == session_id,
                    SessionTempFile.client_id == client_id,
                    SessionTempFile.deleted_at.is_(None),
                )
            )
            .order_by(SessionTempFile.id.asc())
        )
        return list(result.scalars().all())

    async def create(
        self,
        *,
        filename: str,
        original_filename: str,
        mime_type: str,
        size: int,
        path: str,
        session_id: str,
        client_id: str,
        is_short_document: bool,
        full_content: str | None,
    ) -> SessionTempFile:
        """Insert a new active temp file record."""
        temp_file = SessionTempFile(
            filename=filename,
            original_filename=original_filename,
            mime_type=mime_type,
            size=size,
            path=path,
            session_id=session_id,
            client_id=client_id,
            is_short_document=is_short_document,
            full_content=full_content,
        )
        self._session.add(temp_file)
        await self._session.flush()
        await self._session.refresh(temp_file)
        return temp_file

    async def soft_delete_for_session(self, session_id: str, client_id: str) -> int:
        """Mark every active temp file of a session as deleted.

        Returns the number of rows affected.
        """
        result = await self._session.execute(
            update(SessionTempFile)
            .where(
                and_(
                    SessionTempFile.session_id == session_id,
                    SessionTempFile.client_id == client_id,
                    SessionTempFile.deleted_at.is_(None),
                )
            )
            .values(deleted_at=datetime.now(UTC))
        )
        return result.rowcount or 0

    async def soft_delete_ids(
        self, session_id: str, client_id: str, ids: Sequence[int]
    ) -> int:
        """Mark the given active temp files of a session as deleted.

        Ids that are already deleted or belong to another session are ignored.
        Returns the number of rows affected.
        """
        if not ids:
            return 0
        result = await self._session.execute(
            update(SessionTempFile)
            .where(
                and_(
                    SessionTempFile.id.in_(ids),
                    SessionTempFile.session_id == session_id,
                    SessionTempFile.client_id == client_id,
                    SessionTempFile.deleted_at.is_(None),
                )
            )
            .values(deleted_at=datetime.now(UTC))
        )
        return result.rowcount or 0
