"""Unit tests for the model registry."""

from unittest.mock import MagicMock

import pytest
from langchain_anthropic import ChatAnthropic
from langchain_deepseek import ChatDeepSeek
from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from ragchat.core.exceptions import ConfigurationError, ModelNotConfiguredError
from ragchat.core.settings import LLMConfig, ModelSpec
from ragchat.services.model_registry import ModelRegistry, build_model_registry


def _config(models: dict[str, ModelSpec], default_model_id: str, **keys: str) -> LLMConfig:
    return LLMConfig(
        models=models,
        default_model_id=default_model_id,
        api_key=SecretStr(keys.get("api_key", "")),
        openai_api_key=SecretStr(keys.get("openai_api_key", "")),
        anthropic_api_key=SecretStr(keys.get("anthropic_api_key", "")),
        temperature=0.7,
        max_tokens=4096,
        max_retries=3,
        embedding_model="text-embedding-3-small",
    )


class TestModelRegistry:
    @pytest.fixture
    def registry(self) -> ModelRegistry:
        specs = {
            "fast": ModelSpec(title="Fast", model_name="fast-1"),
            "smart": ModelSpec(title="Smart", model_name="smart-1"),
        }
        models = {"fast": MagicMock(name="fast"), "smart": MagicMock(name="smart")}
        return ModelRegistry(models, specs, default_model_id="fast")

    def test_resolve_by_id(self, registry: ModelRegistry) -> None:
        assert registry.resolve("smart") is registry["smart"]

    def test_resolve_default(self, registry: ModelRegistry) -> None:
        assert registry.resolve(None) is registry["fast"]
        assert registry.default_model_id == "fast"

    def test_unknown_model_rejected(self, registry: ModelRegistry) -> None:
        with pytest.raises(ModelNotConfiguredError) as exc_info:
            registry.resolve("ghost")
        assert exc_info.value.status_code == 400

    def test_describe(self, registry: ModelRegistry) -> None:
        assert [(m.id, m.title, m.model_name) for m in registry.describe()] == [
            ("fast", "Fast", "fast-1"),
            ("smart", "Smart", "smart-1"),
        ]

    def test_is_read_only_mapping(self, registry: ModelRegistry) -> None:
        assert len(registry) == 2
        assert set(registry) == {"fast", "smart"}
        with pytest.raises(TypeError):
            registry["other"] = MagicMock()  # type: ignore[index]

    def test_missing_default_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            ModelRegistry({"a": MagicMock()}, {"a": ModelSpec(title="A", model_name="a")}, "b")


class TestBuildModelRegistry:
    def test_builds_provider_clients(self) -> None:
        config = _config(
            {
                "r1": ModelSpec(
                    title="R1", model_name="deepseek-reasoner", base_url="https://api.deepseek.com"
                ),
                "gpt": ModelSpec(title="GPT", model_name="gpt-4o-mini", provider="openai"),
                "claude": ModelSpec(
                    title="Claude", model_name="claude-sonnet-4-20250514", provider="anthropic"
                ),
            },
            default_model_id="r1",
            api_key="ds-key",
            openai_api_key="oa-key",
            anthropic_api_key="an-key",
        )

        registry = build_model_registry(config)

        assert isinstance(registry["r1"], ChatDeepSeek)
        assert isinstance(registry["gpt"], ChatOpenAI)
        assert isinstance(registry["claude"], ChatAnthropic)
        assert registry["gpt"].temperature == 0.7
        assert registry["gpt"].max_retries == 3

    def test_missing_api_key_fails_at_build(self) -> None:
        config = _config(
            {"gpt": ModelSpec(title="GPT", model_name="gpt-4o-mini", provider="openai")},
            default_model_id="gpt",
            api_key="ds-key",
        )

        with pytest.raises(ConfigurationError) as exc_info:
            build_model_registry(config)
        assert "gpt" in exc_info.value.message

    def test_empty_registry_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            build_model_registry(_config({}, default_model_id="none", api_key="k"))
