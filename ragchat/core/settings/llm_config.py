"""LLM provider and model registry configuration."""

from typing import Literal

from pydantic import BaseModel, SecretStr

ModelProvider = Literal["deepseek", "openai", "anthropic"]


class ModelSpec(BaseModel, frozen=True):
    """One selectable chat model."""

    title: str
    model_name: str
    base_url: str | None = None
    provider: ModelProvider = "deepseek"


DEFAULT_MODELS: dict[str, ModelSpec] = {
    "deepseek_r1": ModelSpec(
        title="DeepSeek R1",
        model_name="deepseek-reasoner",
        base_url="https://api.deepseek.com",
    ),
    "deepseek_v3": ModelSpec(
        title="DeepSeek V3",
        model_name="deepseek-chat",
        base_url="https://api.deepseek.com",
    ),
}


class LLMConfig(BaseModel, frozen=True):
    """LLM provider settings.

    Sampling parameters are fixed per deployment and shared by every
    registered model.
    """

    models: dict[str, ModelSpec]
    default_model_id: str
    api_key: SecretStr
    openai_api_key: SecretStr
    anthropic_api_key: SecretStr
    temperature: float
    max_tokens: int
    max_retries: int
    embedding_model: str
    embedding_base_url: str | None = None

    def api_key_for(self, provider: ModelProvider) -> SecretStr:
        """Return the API key used for a provider."""
        match provider:
            case "openai":
                return self.openai_api_key
            case "anthropic":
                return self.anthropic_api_key
            case _:
                return self.api_key
