"""Presentation generation log database model."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from ragchat.core.database import Base, LongText


class PptOperation(Base):
    """One outline or content generation for a presentation.

    Operations of the same presentation share ``ppt_id``.
    """

    __tablename__ = "ppt_operations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ppt_id: Mapped[str] = mapped_column(
        String(36), nullable=False, index=True, default=lambda: str(uuid.uuid4())
    )
    client_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    outline: Mapped[str | None] = mapped_column(LongText, nullable=True)
    content: Mapped[str | None] = mapped_column(LongText, nullable=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
