"""Retrieval and conversation memory configuration."""

from pydantic import BaseModel


class RetrievalConfig(BaseModel, frozen=True):
    """Retrieval adapter and history settings."""

    short_document_threshold: int
    history_window: int
    web_search_results: int
    vector_search_k: int
    temp_search_k: int
