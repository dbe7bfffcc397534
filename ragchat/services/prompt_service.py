"""Service for generating role system prompts via LLM."""

import structlog
from langchain_core.prompts import ChatPromptTemplate

from ragchat.services.model_registry import ModelRegistry

logger = structlog.get_logger()

PROMPT_WRITER_INSTRUCTIONS = (
    "You are an expert prompt engineer. Given the name of a role, write a "
    "detailed, professional system prompt for an AI assistant playing that "
    "role. Define its persona, area of expertise, behavioural guidelines and "
    "main responsibilities. Keep it concise and direct. Return only the "
    "prompt itself, without explanations or extra formatting."
)

PROMPT_WRITER = ChatPromptTemplate.from_messages(
    [
        ("system", PROMPT_WRITER_INSTRUCTIONS),
        ("human", 'Write a system prompt for the role "{role_name}".'),
    ]
)


class PromptService:
    """Generates session system prompts from a role name."""

    def __init__(self, registry: ModelRegistry) -> None:
        self._registry = registry

    async def generate_system_prompt(
        self, role_name: str, model_id: str | None = None
    ) -> str:
        chain = PROMPT_WRITER | self._registry.resolve(model_id)
        response = await chain.ainvoke({"role_name": role_name})
        system_prompt = str(response.content).strip()
        logger.info(
            "System prompt generated",
            role_name=role_name,
            length=len(system_prompt),
        )
        return system_prompt
