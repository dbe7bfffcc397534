"""Format-dispatched document text extraction."""

from pathlib import Path

import pandas as pd
import structlog
from langchain_community.document_loaders import (
    CSVLoader,
    Docx2txtLoader,
    PyPDFLoader,
    TextLoader,
)
from langchain_core.documents import Document
from starlette.concurrency import run_in_threadpool

logger = structlog.get_logger()

EMPTY_SHEET_TEXT = "Empty sheet"


def _load_excel(path: Path) -> list[Document]:
    """One document per sheet, each row rendered as ``Header: value | ...``."""
    sheets = pd.read_excel(path, sheet_name=None, header=None, dtype=str)
    documents: list[Document] = []
    for sheet_name, frame in sheets.items():
        frame = frame.dropna(how="all").fillna("")
        rows = frame.values.tolist()
        headers = [str(cell).strip() for cell in rows[0]] if rows else []
        data_rows = rows[1:]

        lines: list[str] = []
        for row in data_rows:
            cells = []
            for index, cell in enumerate(row):
                value = str(cell).strip()
                if not value:
                    continue
                header = (
                    headers[index]
                    if index < len(headers) and headers[index]
                    else f"Column{index + 1}"
                )
                cells.append(f"{header}: {value}")
            if cells:
                lines.append(" | ".join(cells))

        documents.append(
            Document(
                page_content="\n".join(lines) or EMPTY_SHEET_TEXT,
                metadata={
                    "source": path.name,
                    "sheet": str(sheet_name),
                    "row_count": len(data_rows),
                    "column_count": len(headers),
                },
            )
        )
    return documents


def _load_sync(path: Path, mime_type: str | None) -> list[Document]:
    extension = path.suffix.lower()
    if extension == ".pdf" or mime_type == "application/pdf":
        return PyPDFLoader(str(path)).load()
    if extension in (".docx", ".doc"):
        return Docx2txtLoader(str(path)).load()
    if extension in (".xlsx", ".xls"):
        return _load_excel(path)
    if extension == ".csv" or mime_type == "text/csv":
        return CSVLoader(str(path), encoding="utf-8").load()
    return TextLoader(str(path), encoding="utf-8", autodetect_encoding=True).load()


async def load_documents(path: Path, mime_type: str | None = None) -> list[Document]:
    """Extract the text of a stored upload.

    Loaders are blocking, so they run in the thread pool.
    """
    documents = await run_in_threadpool(_load_sync, path, mime_type)
    logger.info(
        "Document loaded",
        filename=path.name,
        pages=len(documents),
        characters=sum(len(doc.page_content) for doc in documents),
    )
    return documents
