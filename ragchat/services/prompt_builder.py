"""Chat prompt assembly."""

from langchain_core.messages import BaseMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant who can help users with a wide range of questions."
)
NO_SEARCH_RESULTS = "No relevant search results were found."

CHAT_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "{system_prompt}\n\n"
            "The following search results may be useful for reference:\n\n"
            "{search_context}\n\n",
        ),
        MessagesPlaceholder("history"),
        ("human", "{input}"),
    ]
)


def build_prompt(
    system_prompt: str | None,
    history: list[BaseMessage],
    search_context: str,
    user_input: str,
) -> list[BaseMessage]:
    """Render system prompt, history, retrieved context and the new message."""
    prompt_value = CHAT_PROMPT.invoke(
        {
            "system_prompt": system_prompt or DEFAULT_SYSTEM_PROMPT,
            "search_context": search_context or NO_SEARCH_RESULTS,
            "history": history,
            "input": user_input,
        }
    )
    return prompt_value.to_messages()
