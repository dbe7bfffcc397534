"""Database connection configuration."""

from pydantic import BaseModel, SecretStr


class DatabaseConfig(BaseModel, frozen=True):
    """Database connection settings."""

    url: SecretStr
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def is_mysql(self) -> bool:
        """Check whether the URL targets MySQL."""
        return self.url.get_secret_value().startswith("mysql")

    @property
    def async_url(self) -> str:
        """DB URL, with utf8mb4 charset appended for MySQL."""
        base = self.url.get_secret_value()
        if self.is_mysql and "?" not in base:
            return f"{base}?charset=utf8mb4"
        return base
