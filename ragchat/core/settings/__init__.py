"""Domain-specific configuration models."""

from ragchat.core.settings.app_config import AppConfig
from ragchat.core.settings.database_config import DatabaseConfig
from ragchat.core.settings.file_upload_config import FileUploadConfig
from ragchat.core.settings.llm_config import DEFAULT_MODELS, LLMConfig, ModelSpec
from ragchat.core.settings.retrieval_config import RetrievalConfig
from ragchat.core.settings.server_config import ServerConfig
from ragchat.core.settings.vector_store_config import VectorStoreConfig

__all__ = [
    "DEFAULT_MODELS",
    "AppConfig",
    "DatabaseConfig",
    "FileUploadConfig",
    "LLMConfig",
    "ModelSpec",
    "RetrievalConfig",
    "ServerConfig",
    "VectorStoreConfig",
]
