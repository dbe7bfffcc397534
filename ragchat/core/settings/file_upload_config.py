"""File upload and storage configuration."""

from pathlib import Path

from pydantic import BaseModel


class FileUploadConfig(BaseModel, frozen=True):
    """File upload settings and on-disk storage roots."""

    max_file_size_mb: int
    allowed_extensions: str
    upload_path: Path
    temp_upload_path: Path
    reader_upload_path: Path

    @property
    def allowed_extensions_list(self) -> list[str]:
        """Get allowed extensions as a list."""
        return [ext.strip().lower() for ext in self.allowed_extensions.split(",")]

    @property
    def max_file_size_bytes(self) -> int:
        """Get maximum file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    def client_upload_dir(self, client_id: str) -> Path:
        """Knowledge-base upload directory of a client."""
        return self.upload_path / client_id

    def session_temp_dir(self, session_id: str, client_id: str) -> Path:
        """Directory holding the temporary upload of a session."""
        return self.temp_upload_path / client_id / session_id

    def reader_client_dir(self, client_id: str) -> Path:
        """Directory holding the documents a client opened in the reader."""
        return self.reader_upload_path / client_id
