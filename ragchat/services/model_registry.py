"""Immutable registry of configured chat models."""

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

import structlog
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_deepseek import ChatDeepSeek
from langchain_openai import ChatOpenAI

from ragchat.core.exceptions import ConfigurationError, ModelNotConfiguredError
from ragchat.core.settings import LLMConfig, ModelSpec
from ragchat.schemas.chat_schema import ModelInfo

logger = structlog.get_logger()


class ModelRegistry(Mapping[str, BaseChatModel]):
    """Read-only ``model_id -> chat model`` map built once at startup."""

    def __init__(
        self,
        models: Mapping[str, BaseChatModel],
        specs: Mapping[str, ModelSpec],
        default_model_id: str,
    ) -> None:
        if default_model_id not in models:
            raise ConfigurationError(
                f"Default model '{default_model_id}' is not configured"
            )
        self._models = MappingProxyType(dict(models))
        self._specs = MappingProxyType(dict(specs))
        self._default_model_id = default_model_id

    def __getitem__(self, model_id: str) -> BaseChatModel:
        return self._models[model_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)

    @property
    def default_model_id(self) -> str:
        return self._default_model_id

    def resolve(self, model_id: str | None) -> BaseChatModel:
        """Return the model for ``model_id``, or the default when omitted.

        Raises:
            ModelNotConfiguredError: ``model_id`` is not registered.
        """
        key = model_id or self._default_model_id
        model = self._models.get(key)
        if model is None:
            raise ModelNotConfiguredError(key)
        return model

    def describe(self) -> list[ModelInfo]:
        return [
            ModelInfo(id=model_id, title=spec.title, model_name=spec.model_name)
            for model_id, spec in self._specs.items()
        ]


def _create_chat_model(model_id: str, spec: ModelSpec, config: LLMConfig) -> BaseChatModel:
    api_key = config.api_key_for(spec.provider)
    if not api_key.get_secret_value():
        raise ConfigurationError(
            f"Missing API key for model '{model_id}' (provider: {spec.provider})"
        )

    common: dict[str, Any] = {
        "api_key": api_key,
        "temperature": config.temperature,
        "max_tokens": config.max_tokens,
        "max_retries": config.max_retries,
        "streaming": True,
    }
    if spec.base_url:
        common["base_url"] = spec.base_url

    match spec.provider:
        case "deepseek":
            return ChatDeepSeek(model=spec.model_name, **common)
        case "openai":
            return ChatOpenAI(model=spec.model_name, **common)
        case "anthropic":
            return ChatAnthropic(  # type: ignore[call-arg]
                model_name=spec.model_name,
                **common,
            )
        case _:
            raise ConfigurationError(f"Unsupported LLM provider: {spec.provider}")


def build_model_registry(config: LLMConfig) -> ModelRegistry:
    """Instantiate every configured model.

    Raises:
        ConfigurationError: A model lacks its API key, names an unknown
            provider, or the default model id is not registered.
    """
    if not config.models:
        raise ConfigurationError("No chat models are configured")

    models = {
        model_id: _create_chat_model(model_id, spec, config)
        for model_id, spec in config.models.items()
    }
    for model_id, spec in config.models.items():
        logger.info(
            "Chat model registered",
            model_id=model_id,
            model_name=spec.model_name,
            provider=spec.provider,
        )
    return ModelRegistry(models, config.models, config.default_model_id)
