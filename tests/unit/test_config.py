"""Tests for domain-specific configuration."""

import json
from pathlib import Path

import pytest
from pydantic import SecretStr, ValidationError

from ragchat.core.config import Settings
from ragchat.core.settings import (
    AppConfig,
    DatabaseConfig,
    FileUploadConfig,
    LLMConfig,
    ModelSpec,
    ServerConfig,
    VectorStoreConfig,
)


def _llm_config(**overrides: object) -> LLMConfig:
    values: dict[str, object] = {
        "models": {"m": ModelSpec(title="M", model_name="m-1")},
        "default_model_id": "m",
        "api_key": SecretStr("llm-key"),
        "openai_api_key": SecretStr("openai-key"),
        "anthropic_api_key": SecretStr("anthropic-key"),
        "temperature": 0.7,
        "max_tokens": 4096,
        "max_retries": 3,
        "embedding_model": "text-embedding-3-small",
    }
    values.update(overrides)
    return LLMConfig(**values)  # type: ignore[arg-type]


class TestLLMConfig:
    """LLMConfig frozen immutability and key selection tests."""

    def test_frozen_immutability(self) -> None:
        config = _llm_config()
        with pytest.raises(ValidationError):
            config.temperature = 0.1  # type: ignore[misc]

    def test_api_key_for_provider(self) -> None:
        config = _llm_config()
        assert config.api_key_for("deepseek").get_secret_value() == "llm-key"
        assert config.api_key_for("openai").get_secret_value() == "openai-key"
        assert config.api_key_for("anthropic").get_secret_value() == "anthropic-key"

    def test_model_spec_defaults_to_deepseek_provider(self) -> None:
        spec = ModelSpec(title="R1", model_name="deepseek-reasoner")
        assert spec.provider == "deepseek"
        assert spec.base_url is None

    def test_model_spec_rejects_unknown_provider(self) -> None:
        with pytest.raises(ValidationError):
            ModelSpec(title="X", model_name="x", provider="mystery")  # type: ignore[arg-type]


class TestAppConfig:
    """AppConfig frozen immutability and property tests."""

    def test_frozen_immutability(self) -> None:
        config = AppConfig(name="test", env="development", debug=True)
        with pytest.raises(ValidationError):
            config.name = "changed"  # type: ignore[misc]

    def test_development_logs_to_console(self) -> None:
        config = AppConfig(name="app", env="development", debug=True)
        assert config.is_development is True
        assert config.console_logs is True
        assert config.echo_sql is True

    def test_production_logs_json(self) -> None:
        config = AppConfig(name="app", env="production", debug=False)
        assert config.is_development is False
        assert config.console_logs is False
        assert config.echo_sql is False

    def test_log_level_normalised(self) -> None:
        config = AppConfig(name="app", env="staging", debug=False, log_level="warning")  # type: ignore[arg-type]
        assert config.log_level == "WARNING"

    def test_rejects_unknown_log_level(self) -> None:
        with pytest.raises(ValidationError):
            AppConfig(name="app", env="staging", debug=False, log_level="LOUD")  # type: ignore[arg-type]


class TestVectorStoreConfig:
    def test_frozen_immutability(self) -> None:
        config = VectorStoreConfig(path=Path("./data"), chunk_size=1000, chunk_overlap=200)
        with pytest.raises(ValidationError):
            config.chunk_size = 500  # type: ignore[misc]

    def test_index_directories(self) -> None:
        config = VectorStoreConfig(path=Path("/srv/vs"), chunk_size=500, chunk_overlap=100)
        assert config.client_index_dir("c1") == Path("/srv/vs/clients/c1")
        assert config.session_index_dir("s1", "c1") == Path("/srv/vs/temp/c1/s1")


class TestFileUploadConfig:
    """FileUploadConfig frozen immutability and property tests."""

    def _config(self, **overrides: object) -> FileUploadConfig:
        values: dict[str, object] = {
            "max_file_size_mb": 10,
            "allowed_extensions": "pdf, TXT, md",
            "upload_path": Path("/srv/uploads"),
            "temp_upload_path": Path("/srv/temp"),
        "reader_upload_path": Path("/srv/reader"),
        }
        values.update(overrides)
        return FileUploadConfig(**values)  # type: ignore[arg-type]

    def test_frozen_immutability(self) -> None:
        config = self._config()
        with pytest.raises(ValidationError):
            config.max_file_size_mb = 20  # type: ignore[misc]

    def test_allowed_extensions_list(self) -> None:
        assert self._config().allowed_extensions_list == ["pdf", "txt", "md"]

    def test_max_file_size_bytes(self) -> None:
        assert self._config(max_file_size_mb=5).max_file_size_bytes == 5 * 1024 * 1024

    def test_storage_directories(self) -> None:
        config = self._config()
        assert config.client_upload_dir("c1") == Path("/srv/uploads/c1")
        assert config.session_temp_dir("s1", "c1") == Path("/srv/temp/c1/s1")
        assert config.reader_client_dir("c1") == Path("/srv/reader/c1")


class TestServerConfig:
    def test_defaults(self) -> None:
        config = ServerConfig(host="127.0.0.1", port=3030)
        assert config.api_prefix == "/api"
        assert config.chat_rate_limit == "30/minute"


class TestDatabaseConfig:
    def test_mysql_url_gets_utf8mb4(self) -> None:
        config = DatabaseConfig(url=SecretStr("mysql+aiomysql://u:p@db/chat"))
        assert config.is_mysql is True
        assert config.async_url.endswith("?charset=utf8mb4")

    def test_sqlite_url_untouched(self) -> None:
        config = DatabaseConfig(url=SecretStr("sqlite+aiosqlite:///:memory:"))
        assert config.is_mysql is False
        assert config.async_url == "sqlite+aiosqlite:///:memory:"


class TestSettingsDomainProperties:
    """Settings domain property access tests."""

    def test_default_registry(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.llm.default_model_id == "deepseek_r1"
        assert set(s.llm.models) == {"deepseek_r1", "deepseek_v3"}
        assert s.llm.temperature == 0.7
        assert s.llm.max_tokens == 4096
        assert s.llm.max_retries == 3

    def test_models_from_json_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(
            "MODELS",
            json.dumps(
                {
                    "gpt": {
                        "title": "GPT",
                        "model_name": "gpt-4o-mini",
                        "provider": "openai",
                    }
                }
            ),
        )
        monkeypatch.setenv("DEFAULT_MODEL_ID", "gpt")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert list(s.llm.models) == ["gpt"]
        assert s.llm.models["gpt"].provider == "openai"
        assert s.llm.default_model_id == "gpt"

    def test_app_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_NAME", "my-app")
        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.setenv("DEBUG", "false")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.app.name == "my-app"
        assert s.app.debug is False
        assert s.app.console_logs is False

    def test_retrieval_property(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.retrieval.short_document_threshold == 60_000
        assert s.retrieval.history_window == 20
        assert s.retrieval.web_search_results == 5
        assert s.retrieval.vector_search_k == 3
        assert s.retrieval.temp_search_k == 5

    def test_vector_store_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHUNK_SIZE", "500")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.vector_store.chunk_size == 500
        assert s.vector_store.chunk_overlap == 200

    def test_server_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "9000")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.server.port == 9000
        assert s.server.api_prefix == "/api"

    def test_convenience_properties_delegate(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.is_development is True
        assert "xlsx" in s.allowed_extensions_list
        assert s.max_file_size_bytes == 10 * 1024 * 1024

    def test_database_url_required(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]
