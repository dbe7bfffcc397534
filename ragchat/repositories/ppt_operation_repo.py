"""Repository for presentation generation logs."""

from typing import Any

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ragchat.models.ppt_operation import PptOperation


class PptOperationRepository:
    """Encapsulates PptOperation queries. Reads are scoped by client."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        client_id: str,
        type: str,
        title: str | None = None,
        outline: str | None = None,
        ppt_id: str | None = None,
    ) -> PptOperation:
        """Insert a pending operation; a new ``ppt_id`` is assigned when omitted."""
        operation = PptOperation(
            client_id=client_id,
            type=type,
            title=title,
            outline=outline,
        )
        if ppt_id:
            operation.ppt_id = ppt_id
        self._session.add(operation)
        await self._session.flush()
        await self._session.refresh(operation)
        return operation

    async def complete(self, operation_id: int, **values: Any) -> None:
        """Mark an operation completed, storing its result or error."""
        await self._session.execute(
            update(PptOperation)
            .where(PptOperation.id == operation_id)
            .values(is_completed=True, **values)
        )

    async def find(self, operation_id: int, client_id: str) -> PptOperation | None:
        result = await self._session.execute(
            select(PptOperation).where(
                and_(
                    PptOperation.id == operation_id,
                    PptOperation.client_id == client_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def find_by_client(self, client_id: str) -> list[PptOperation]:
        """Operations of a client, newest first."""
        result = await self._session.execute(
            select(PptOperation)
            .where(PptOperation.client_id == client_id)
            .order_by(PptOperation.created_at.desc(), PptOperation.id.desc())
        )
        return list(result.scalars().all())

    async def find_by_ppt(self, ppt_id: str, client_id: str) -> list[PptOperation]:
        """Operations of one presentation, oldest first."""
        result = await self._session.execute(
            select(PptOperation)
            .where(
                and_(
                    PptOperation.ppt_id == ppt_id,
                    PptOperation.client_id == client_id,
                )
            )
            .order_by(PptOperation.created_at.asc(), PptOperation.id.asc())
        )
        return list(result.scalars().all())
