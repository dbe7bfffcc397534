"""Upload validation and on-disk file helpers."""

import mimetypes
import shutil
import time
from dataclasses import dataclass
from pathlib import Path

import structlog
from starlette.concurrency import run_in_threadpool

from ragchat.core.exceptions import FileTooLargeError, UnsupportedFileTypeError
from ragchat.core.settings import FileUploadConfig

logger = structlog.get_logger()


@dataclass(frozen=True)
class IncomingFile:
    """Uploaded file content detached from the HTTP layer."""

    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def basename(self) -> str:
        # Clients may send a full path as the filename.
        return Path(self.filename.replace("\\", "/")).name

    @property
    def extension(self) -> str:
        return Path(self.basename).suffix.lower().lstrip(".")

    @property
    def mime_type(self) -> str:
        if self.content_type and self.content_type != "application/octet-stream":
            return self.content_type
        guessed, _ = mimetypes.guess_type(self.basename)
        return guessed or "application/octet-stream"


def validate_upload(file: IncomingFile, config: FileUploadConfig) -> None:
    """Reject files with a disallowed extension or over the size limit."""
    if not file.basename or file.extension not in config.allowed_extensions_list:
        raise UnsupportedFileTypeError(file.extension)
    if file.size > config.max_file_size_bytes:
        raise FileTooLargeError(config.max_file_size_mb)


def timestamped_name(filename: str) -> str:
    """``report.pdf`` -> ``report_1700000000000.pdf``."""
    path = Path(filename)
    return f"{path.stem}_{int(time.time() * 1000)}{path.suffix}"


def available_path(directory: Path, filename: str) -> Path:
    """Path for ``filename`` in ``directory``, timestamped if it is taken."""
    candidate = directory / filename
    if candidate.exists():
        candidate = directory / timestamped_name(filename)
    return candidate


def _write(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


async def write_file(path: Path, content: bytes) -> None:
    await run_in_threadpool(_write, path, content)


def _remove(path: Path) -> None:
    if path.is_dir():
        shutil.rmtree(path)
    elif path.exists():
        path.unlink()


async def remove_path(path: Path) -> None:
    """Delete a file or directory tree if it exists."""
    await run_in_threadpool(_remove, path)
    logger.debug("Removed path", path=str(path))
