"""Conversation memory reconstruction from persisted messages."""

from collections.abc import Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from ragchat.models.chat_message import ChatMessage


def _human_text(message: ChatMessage) -> str:
    if message.search_context:
        return f"{message.content}\n\nRelevant context:\n{message.search_context}"
    return message.content


def build_history(messages: Sequence[ChatMessage], k: int = 20) -> list[BaseMessage]:
    """Rebuild the last ``k`` user/assistant exchanges in chronological order.

    ``messages`` must be ordered oldest first. A user row is paired with the
    assistant row that immediately follows it; rows without a partner
    (an orphaned user message, or either half of a deleted pair) are
    skipped.
    """
    if k <= 0:
        return []

    pairs: list[tuple[ChatMessage, ChatMessage]] = []
    index = 0
    while index < len(messages):
        current = messages[index]
        following = messages[index + 1] if index + 1 < len(messages) else None
        if (
            current.role == "user"
            and following is not None
            and following.role == "assistant"
        ):
            pairs.append((current, following))
            index += 2
        else:
            index += 1

    history: list[BaseMessage] = []
    for user_message, assistant_message in pairs[-k:]:
        history.append(HumanMessage(content=_human_text(user_message)))
        history.append(AIMessage(content=assistant_message.content))
    return history
