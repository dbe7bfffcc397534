"""Repository for reader document records."""

from datetime import UTC, datetime

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ragchat.models.reading_file import ReadingFile

ANALYSIS_COLUMNS = frozenset({"summary", "deep_reading", "mind_map"})


class ReadingFileRepository:
    """Encapsulates ReadingFile queries, scoped by client.

    Soft-deleted rows are never returned.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_all(self, client_id: str) -> list[ReadingFile]:
        """Active reader documents of a client, newest first."""
        result = await self._session.execute(
            select(ReadingFile)
            .where(
                and_(
                    ReadingFile.client_id == client_id,
                    ReadingFile.deleted_at.is_(None),
                )
            )
            .order_by(ReadingFile.created_at.desc(), ReadingFile.id.desc())
        )
        return list(result.scalars().all())

    async def find(self, filename: str, client_id: str) -> ReadingFile | None:
        result = await self._session.execute(
            select(ReadingFile).where(
                and_(
                    ReadingFile.filename == filename,
                    ReadingFile.client_id == client_id,
                    ReadingFile.deleted_at.is_(None),
                )
            )
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        *,
        filename: str,
        original_filename: str,
        mime_type: str,
        size: int,
        path: str,
        client_id: str,
    ) -> ReadingFile:
        reading_file = ReadingFile(
            filename=filename,
            original_filename=original_filename,
            mime_type=mime_type,
            size=size,
            path=path,
            client_id=client_id,
        )
        self._session.add(reading_file)
        await self._session.flush()
        await self._session.refresh(reading_file)
        return reading_file

    async def save_analysis(self, file_id: int, column: str, text: str) -> None:
        """Store the finished text of one analysis on the row."""
        if column not in ANALYSIS_COLUMNS:
            raise ValueError(f"Unknown analysis column: {column}")
        await self._session.execute(
            update(ReadingFile).where(ReadingFile.id == file_id).values({column: text})
        )

    async def soft_delete(self, filename: str, client_id: str) -> int:
        result = await self._session.execute(
            update(ReadingFile)
            .where(
                and_(
                    ReadingFile.filename == filename,
                    ReadingFile.client_id == client_id,
                    ReadingFile.deleted_at.is_(None),
                )
            )
            .values(deleted_at=datetime.now(UTC))
        )
        return result.rowcount or 0
