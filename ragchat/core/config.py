"""Application configuration using Pydantic Settings V2."""

from functools import cached_property
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from ragchat.core.settings import (
    DEFAULT_MODELS,
    AppConfig,
    DatabaseConfig,
    FileUploadConfig,
    LLMConfig,
    ModelSpec,
    RetrievalConfig,
    ServerConfig,
    VectorStoreConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.llm.models).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM
    models: dict[str, ModelSpec] = Field(
        default_factory=lambda: dict(DEFAULT_MODELS),
        description="Model registry as JSON: {id: {title, model_name, base_url, provider}}",
    )
    default_model_id: str = Field(
        default="deepseek_r1",
        description="Model used when a request does not name one",
    )
    llm_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="API key for OpenAI-compatible (deepseek provider) endpoints",
    )
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="OpenAI API key (openai models and embeddings)",
    )
    anthropic_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Anthropic API key",
    )
    llm_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for every model",
    )
    llm_max_tokens: int = Field(
        default=4096,
        ge=1,
        description="Maximum completion tokens",
    )
    llm_max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Maximum retries on transient provider errors",
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name",
    )
    embedding_base_url: str | None = Field(
        default=None,
        description="Base URL of an OpenAI-compatible embedding endpoint",
    )

    # App
    app_name: str = Field(
        default="ragchat",
        description="Application name",
    )
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Debug mode",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # Vector Store
    vector_store_path: Path = Field(
        default=Path("./data/vector_store"),
        description="Path to vector store directory",
    )
    chunk_size: int = Field(
        default=1000,
        ge=100,
        le=4000,
        description="Text chunk size for splitting",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        le=500,
        description="Overlap between chunks",
    )
    vector_store_cache_size: int = Field(
        default=64,
        ge=1,
        description="Maximum number of vector store handles kept in memory",
    )

    # Retrieval
    short_document_threshold: int = Field(
        default=60_000,
        ge=0,
        description="Documents up to this many characters are inlined instead of indexed",
    )
    history_window: int = Field(
        default=20,
        ge=0,
        description="Number of user/assistant pairs replayed as history",
    )
    web_search_results: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Number of web search results",
    )
    vector_search_k: int = Field(
        default=3,
        ge=1,
        description="Knowledge-base documents retrieved per turn",
    )
    temp_search_k: int = Field(
        default=5,
        ge=1,
        description="Temporary document chunks retrieved per turn",
    )

    # File Upload
    max_file_size_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum file size in MB",
    )
    allowed_extensions: str = Field(
        default="pdf,docx,doc,txt,md,csv,xlsx,xls",
        description="Comma-separated list of allowed file extensions",
    )
    upload_path: Path = Field(
        default=Path("./data/uploads"),
        description="Knowledge-base upload directory",
    )
    temp_upload_path: Path = Field(
        default=Path("./data/temp"),
        description="Session temporary upload directory",
    )
    reader_upload_path: Path = Field(
        default=Path("./data/reader"),
        description="Reader document upload directory",
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=3030,
        ge=1,
        le=65535,
        description="Server port",
    )
    api_prefix: str = Field(
        default="/api",
        description="Global route prefix",
    )
    chat_rate_limit: str = Field(
        default="30/minute",
        description="Chat stream rate limit per client",
    )

    # Database
    database_url: SecretStr = Field(
        description="Async database URL (mysql+aiomysql://...)",
    )

    # --- Domain properties ---

    @cached_property
    def llm(self) -> LLMConfig:
        """LLM provider configuration."""
        return LLMConfig(
            models=self.models,
            default_model_id=self.default_model_id,
            api_key=self.llm_api_key,
            openai_api_key=self.openai_api_key,
            anthropic_api_key=self.anthropic_api_key,
            temperature=self.llm_temperature,
            max_tokens=self.llm_max_tokens,
            max_retries=self.llm_max_retries,
            embedding_model=self.embedding_model,
            embedding_base_url=self.embedding_base_url,
        )

    @cached_property
    def app(self) -> AppConfig:
        """Application environment configuration."""
        return AppConfig(
            name=self.app_name,
            env=self.app_env,
            debug=self.debug,
            log_level=self.log_level,
        )

    @cached_property
    def vector_store(self) -> VectorStoreConfig:
        """Vector store configuration."""
        return VectorStoreConfig(
            path=self.vector_store_path,
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
            cache_size=self.vector_store_cache_size,
        )

    @cached_property
    def retrieval(self) -> RetrievalConfig:
        """Retrieval and history configuration."""
        return RetrievalConfig(
            short_document_threshold=self.short_document_threshold,
            history_window=self.history_window,
            web_search_results=self.web_search_results,
            vector_search_k=self.vector_search_k,
            temp_search_k=self.temp_search_k,
        )

    @cached_property
    def file_upload(self) -> FileUploadConfig:
        """File upload configuration."""
        return FileUploadConfig(
            max_file_size_mb=self.max_file_size_mb,
            allowed_extensions=self.allowed_extensions,
            upload_path=self.upload_path,
            temp_upload_path=self.temp_upload_path,
            reader_upload_path=self.reader_upload_path,
        )

    @cached_property
    def server(self) -> ServerConfig:
        """Server configuration."""
        return ServerConfig(
            host=self.host,
            port=self.port,
            api_prefix=self.api_prefix,
            chat_rate_limit=self.chat_rate_limit,
        )

    @cached_property
    def database(self) -> DatabaseConfig:
        """Database connection configuration."""
        return DatabaseConfig(url=self.database_url)

    # --- Convenience properties (delegate to domain configs) ---

    @property
    def allowed_extensions_list(self) -> list[str]:
        """Get allowed extensions as a list."""
        return self.file_upload.allowed_extensions_list

    @property
    def max_file_size_bytes(self) -> int:
        """Get maximum file size in bytes."""
        return self.file_upload.max_file_size_bytes

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app.is_development


# Global settings instance
settings = Settings()
