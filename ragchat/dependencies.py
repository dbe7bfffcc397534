"""Global dependencies for the application."""

from functools import lru_cache

from fastapi import Depends, Request
from langchain_core.embeddings import Embeddings
from langchain_openai import OpenAIEmbeddings
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ragchat.core.config import settings
from ragchat.core.database import get_async_session, get_session_factory
from ragchat.core.exceptions import ClientIdRequiredError, ConfigurationError
from ragchat.services.chat_service import ChatService
from ragchat.services.knowledge_base_service import KnowledgeBaseService
from ragchat.services.locks import KeyedLocks
from ragchat.services.model_registry import ModelRegistry
from ragchat.services.persistence import TurnPersister
from ragchat.services.ppt_service import PptService
from ragchat.services.prompt_service import PromptService
from ragchat.services.reader_service import ReaderService
from ragchat.services.retrieval import ContextAggregator
from ragchat.services.session_service import SessionService
from ragchat.services.temp_document_service import TempDocumentService
from ragchat.services.vector_store_cache import VectorStoreCache

# --- Process-wide resources ---


@lru_cache
def get_embeddings() -> Embeddings:
    """Get the embeddings model instance."""
    return OpenAIEmbeddings(
        model=settings.llm.embedding_model,
        api_key=settings.llm.openai_api_key,
        base_url=settings.llm.embedding_base_url,
    )


@lru_cache
def get_vector_store_cache() -> VectorStoreCache:
    """Get the shared LRU cache of loaded FAISS indexes."""
    return VectorStoreCache(max_size=settings.vector_store.cache_size)


@lru_cache
def get_keyed_locks() -> KeyedLocks:
    """Get the shared per-client/per-session lock table."""
    return KeyedLocks()


def get_model_registry(request: Request) -> ModelRegistry:
    """Get the model registry built during application startup."""
    registry = getattr(request.app.state, "model_registry", None)
    if registry is None:
        raise ConfigurationError("Model registry is not initialised")
    return registry


# --- Request context ---


def get_client_id(request: Request) -> str:
    """Extract the client id populated by ClientIdMiddleware."""
    client_id = getattr(request.state, "client_id", None)
    if not client_id:
        raise ClientIdRequiredError()
    return client_id


# --- Services ---


def get_temp_document_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    embeddings: Embeddings = Depends(get_embeddings),
    cache: VectorStoreCache = Depends(get_vector_store_cache),
    locks: KeyedLocks = Depends(get_keyed_locks),
) -> TempDocumentService:
    """Get TempDocumentService sharing the process-wide cache and locks."""
    return TempDocumentService(
        session_factory=session_factory,
        embeddings=embeddings,
        cache=cache,
        locks=locks,
        vector_config=settings.vector_store,
        upload_config=settings.file_upload,
        retrieval_config=settings.retrieval,
    )


def get_knowledge_base_service(
    embeddings: Embeddings = Depends(get_embeddings),
    cache: VectorStoreCache = Depends(get_vector_store_cache),
    locks: KeyedLocks = Depends(get_keyed_locks),
) -> KnowledgeBaseService:
    """Get KnowledgeBaseService sharing the process-wide cache and locks."""
    return KnowledgeBaseService(
        embeddings=embeddings,
        cache=cache,
        locks=locks,
        vector_config=settings.vector_store,
        upload_config=settings.file_upload,
        retrieval_config=settings.retrieval,
    )


def get_session_service(
    session: AsyncSession = Depends(get_async_session),
    temp_documents: TempDocumentService = Depends(get_temp_document_service),
    client_id: str = Depends(get_client_id),
) -> SessionService:
    """Get SessionService for the calling client."""
    return SessionService(
        session=session,
        temp_documents=temp_documents,
        client_id=client_id,
    )


def get_chat_service(
    registry: ModelRegistry = Depends(get_model_registry),
    temp_documents: TempDocumentService = Depends(get_temp_document_service),
    knowledge_base: KnowledgeBaseService = Depends(get_knowledge_base_service),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ChatService:
    """Get ChatService wired with retrieval, the model registry and persistence."""
    return ChatService(
        registry=registry,
        aggregator=ContextAggregator(
            temp_documents=temp_documents,
            knowledge_base=knowledge_base,
        ),
        persister=TurnPersister(
            session_factory=session_factory,
            temp_documents=temp_documents,
        ),
        session_factory=session_factory,
        retrieval_config=settings.retrieval,
    )


def get_prompt_service(
    registry: ModelRegistry = Depends(get_model_registry),
) -> PromptService:
    """Get PromptService backed by the model registry."""
    return PromptService(registry)


def get_reader_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ReaderService:
    """Get ReaderService; analyses outlive the request scope."""
    return ReaderService(
        session_factory=session_factory,
        upload_config=settings.file_upload,
    )


def get_ppt_service(
    session: AsyncSession = Depends(get_async_session),
    registry: ModelRegistry = Depends(get_model_registry),
    client_id: str = Depends(get_client_id),
) -> PptService:
    """Get PptService for the calling client."""
    return PptService(session=session, registry=registry, client_id=client_id)
