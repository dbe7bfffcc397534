"""Chat message database model."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ragchat.core.database import Base, LongText, PreciseDateTime

if TYPE_CHECKING:
    from ragchat.models.chat_session import ChatSession


class ChatMessage(Base):
    """One turn half (user or assistant) within a chat session.

    Rows are written once by the turn persister and never updated.
    """

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("ix_chat_messages_session_id_created_at", "session_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        ForeignKey("chat_sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    client_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(LongText, nullable=False, default="")
    reasoning: Mapped[str | None] = mapped_column(LongText, nullable=True)
    search_context: Mapped[str | None] = mapped_column(LongText, nullable=True)
    sources: Mapped[str | None] = mapped_column(Text, nullable=True)
    temp_files: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(PreciseDateTime, nullable=False)

    session: Mapped["ChatSession"] = relationship(back_populates="messages")
