"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import uuid
from collections.abc import AsyncGenerator, AsyncIterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from langchain_core.embeddings import DeterministicFakeEmbedding
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, AIMessageChunk
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ragchat.core.database import Base
from ragchat.core.settings import (
    FileUploadConfig,
    ModelSpec,
    RetrievalConfig,
    VectorStoreConfig,
)
from ragchat.models.chat_message import ChatMessage  # noqa: F401
from ragchat.models.chat_session import ChatSession
from ragchat.models.ppt_operation import PptOperation  # noqa: F401
from ragchat.models.reading_file import ReadingFile  # noqa: F401
from ragchat.models.session_temp_file import SessionTempFile  # noqa: F401
from ragchat.services.knowledge_base_service import KnowledgeBaseService
from ragchat.services.locks import KeyedLocks
from ragchat.services.model_registry import ModelRegistry
from ragchat.services.reader_service import ReaderService
from ragchat.services.temp_document_service import TempDocumentService
from ragchat.services.vector_store_cache import VectorStoreCache

CLIENT_ID = "client-1"

# --- Test DB (SQLite in-memory) ---

test_engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(autouse=True)
async def setup_db() -> AsyncGenerator[None, None]:
    """Create all tables before each test, drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a test database session."""
    async with test_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def override_get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Provide the test session factory."""
    return test_session_factory


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a raw async session for repository tests."""
    async with test_session_factory() as session:
        yield session


async def seed_session(
    client_id: str = CLIENT_ID,
    session_id: str | None = None,
    system_prompt: str | None = None,
    role_name: str | None = None,
) -> ChatSession:
    """Insert a committed chat session."""
    async with test_session_factory() as session:
        chat_session = ChatSession(
            session_id=session_id or str(uuid.uuid4()),
            client_id=client_id,
            role_name=role_name,
            system_prompt=system_prompt,
        )
        session.add(chat_session)
        await session.flush()
        await session.refresh(chat_session)
        await session.commit()
    return chat_session


@pytest.fixture
async def chat_session() -> ChatSession:
    """A committed session owned by CLIENT_ID."""
    return await seed_session()


# --- Storage and retrieval configuration ---


@pytest.fixture
def vector_config(tmp_path: Path) -> VectorStoreConfig:
    return VectorStoreConfig(
        path=tmp_path / "vector_store",
        chunk_size=200,
        chunk_overlap=20,
        cache_size=8,
    )


@pytest.fixture
def upload_config(tmp_path: Path) -> FileUploadConfig:
    return FileUploadConfig(
        max_file_size_mb=1,
        allowed_extensions="pdf,docx,doc,txt,md,csv,xlsx,xls",
        upload_path=tmp_path / "uploads",
        temp_upload_path=tmp_path / "temp",
        reader_upload_path=tmp_path / "reader",
    )


@pytest.fixture
def retrieval_config() -> RetrievalConfig:
    return RetrievalConfig(
        short_document_threshold=500,
        history_window=20,
        web_search_results=5,
        vector_search_k=3,
        temp_search_k=5,
    )


@pytest.fixture
def embeddings() -> DeterministicFakeEmbedding:
    """Deterministic embeddings, no network."""
    return DeterministicFakeEmbedding(size=16)


@pytest.fixture
def vector_cache() -> VectorStoreCache:
    return VectorStoreCache(max_size=8)


@pytest.fixture
def keyed_locks() -> KeyedLocks:
    return KeyedLocks()


@pytest.fixture
def temp_document_service(
    embeddings: DeterministicFakeEmbedding,
    vector_cache: VectorStoreCache,
    keyed_locks: KeyedLocks,
    vector_config: VectorStoreConfig,
    upload_config: FileUploadConfig,
    retrieval_config: RetrievalConfig,
) -> TempDocumentService:
    return TempDocumentService(
        session_factory=test_session_factory,
        embeddings=embeddings,
        cache=vector_cache,
        locks=keyed_locks,
        vector_config=vector_config,
        upload_config=upload_config,
        retrieval_config=retrieval_config,
    )


@pytest.fixture
def knowledge_base_service(
    embeddings: DeterministicFakeEmbedding,
    vector_cache: VectorStoreCache,
    keyed_locks: KeyedLocks,
    vector_config: VectorStoreConfig,
    upload_config: FileUploadConfig,
    retrieval_config: RetrievalConfig,
) -> KnowledgeBaseService:
    return KnowledgeBaseService(
        embeddings=embeddings,
        cache=vector_cache,
        locks=keyed_locks,
        vector_config=vector_config,
        upload_config=upload_config,
        retrieval_config=retrieval_config,
    )


@pytest.fixture
def reader_service(upload_config: FileUploadConfig) -> ReaderService:
    return ReaderService(session_factory=test_session_factory, upload_config=upload_config)


# --- Mock LLM ---


def make_streaming_model(chunks: list[AIMessageChunk]) -> MagicMock:
    """Chat model mock whose ``astream`` yields ``chunks`` in order.

    ``model.astream.call_args`` exposes the prompt messages it received.
    """

    async def _astream(messages: Any, *args: Any, **kwargs: Any) -> AsyncIterator[AIMessageChunk]:
        for chunk in chunks:
            yield chunk

    model = MagicMock(spec=BaseChatModel)
    model.astream = MagicMock(side_effect=_astream)
    return model


@pytest.fixture
def mock_llm() -> MagicMock:
    """Create a mock LLM for testing."""
    mock = make_streaming_model(
        [AIMessageChunk(content="Test "), AIMessageChunk(content="response")]
    )
    mock.ainvoke = AsyncMock(return_value=AIMessage(content="Test response"))
    return mock


def make_registry(models: dict[str, Any], default_model_id: str | None = None) -> ModelRegistry:
    """Registry over pre-built (mock) models."""
    specs = {
        model_id: ModelSpec(title=model_id.title(), model_name=f"{model_id}-model")
        for model_id in models
    }
    return ModelRegistry(models, specs, default_model_id or next(iter(models)))


@pytest.fixture
def model_registry(mock_llm: MagicMock) -> ModelRegistry:
    return make_registry({"test_model": mock_llm})


# --- App override & client fixtures ---


@pytest.fixture
def app(
    model_registry: ModelRegistry,
    temp_document_service: TempDocumentService,
    knowledge_base_service: KnowledgeBaseService,
    reader_service: ReaderService,
):  # type: ignore[no-untyped-def]
    """The application with test database, storage and models."""
    from ragchat.core.database import get_async_session, get_session_factory
    from ragchat.core.rate_limit import limiter
    from ragchat.dependencies import (
        get_knowledge_base_service,
        get_reader_service,
        get_temp_document_service,
    )
    from ragchat.main import app as application

    application.dependency_overrides[get_async_session] = override_get_async_session
    application.dependency_overrides[get_session_factory] = override_get_session_factory
    application.dependency_overrides[get_temp_document_service] = (
        lambda: temp_document_service
    )
    application.dependency_overrides[get_knowledge_base_service] = (
        lambda: knowledge_base_service
    )
    application.dependency_overrides[get_reader_service] = lambda: reader_service
    # ASGITransport does not run the lifespan.
    application.state.model_registry = model_registry
    limiter.reset()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:  # type: ignore[no-untyped-def]
    """Create an async test client without a client id."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:  # type: ignore[no-untyped-def]
    """Create an async test client identified as CLIENT_ID."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-Client-Id": CLIENT_ID},
    ) as ac:
        yield ac
