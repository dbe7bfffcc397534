"""Server configuration."""

from pydantic import BaseModel


class ServerConfig(BaseModel, frozen=True):
    """Server settings."""

    host: str
    port: int
    api_prefix: str = "/api"
    chat_rate_limit: str = "30/minute"
