"""Async database engine and session configuration."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import DateTime, Text
from sqlalchemy.dialects import mysql
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ragchat.core.config import settings

# Inlined documents and search contexts exceed MySQL TEXT (64 KB).
LongText = Text().with_variant(mysql.LONGTEXT(), "mysql")
# Microsecond precision keeps user/assistant rows of one turn ordered.
PreciseDateTime = DateTime(timezone=True).with_variant(mysql.DATETIME(fsp=6), "mysql")


def _engine_options() -> dict[str, Any]:
    options: dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": settings.app.echo_sql,
    }
    if settings.database.is_mysql:
        options.update(
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
            pool_recycle=3600,
        )
    return options


engine = create_async_engine(settings.database.async_url, **_engine_options())

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Provide the session factory for work that outlives a request scope."""
    return async_session_factory
