"""Reader document database model."""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ragchat.core.database import Base, LongText


class ReadingFile(Base):
    """Document a client opened in the reader, with its cached analyses.

    ``summary``, ``deep_reading`` and ``mind_map`` are filled the first time
    each analysis completes and returned verbatim afterwards.
    """

    __tablename__ = "reading_files"
    __table_args__ = (
        Index("ix_reading_files_client_id_filename", "client_id", "filename"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    path: Mapped[str] = mapped_column(String(1024), nullable=False)
    client_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    summary: Mapped[str | None] = mapped_column(LongText, nullable=True)
    deep_reading: Mapped[str | None] = mapped_column(LongText, nullable=True)
    mind_map: Mapped[str | None] = mapped_column(LongText, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
