"""Chat session database model."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ragchat.core.database import Base

if TYPE_CHECKING:
    from ragchat.models.chat_message import ChatMessage
    from ragchat.models.session_temp_file import SessionTempFile


class ChatSession(Base):
    """Conversation owned by a client."""

    __tablename__ = "chat_sessions"
    __table_args__ = (
        Index("ix_chat_sessions_client_id_created_at", "client_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        String(36), unique=True, nullable=False, index=True
    )
    client_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    role_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    system_prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    messages: Mapped[list["ChatMessage"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    temp_files: Mapped[list["SessionTempFile"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
