"""Reader API router: document storage and streamed analyses."""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import aclosing
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from fastapi.responses import FileResponse, StreamingResponse

from ragchat.api.v1.sse import DONE_MARKER, SSE_HEADERS, sse_event
from ragchat.core.config import settings
from ragchat.core.exceptions import AppException
from ragchat.core.rate_limit import limiter
from ragchat.dependencies import get_client_id, get_model_registry, get_reader_service
from ragchat.schemas.chat_schema import StreamEvent
from ragchat.schemas.reader_schema import AnalysisKind, ReadingFileInfo
from ragchat.schemas.response_schema import ApiResponse, success_response
from ragchat.services.file_storage import IncomingFile
from ragchat.services.model_registry import ModelRegistry
from ragchat.services.reader_service import ReaderService

logger = structlog.get_logger()

router = APIRouter(prefix=f"{settings.server.api_prefix}/reader", tags=["reader"])

ReaderServiceDep = Annotated[ReaderService, Depends(get_reader_service)]
RegistryDep = Annotated[ModelRegistry, Depends(get_model_registry)]
ClientIdDep = Annotated[str, Depends(get_client_id)]


async def analysis_generator(
    request: Request, events: AsyncIterator[StreamEvent], filename: str
) -> AsyncGenerator[str, None]:
    """Frame analysis events as SSE, ending with ``[DONE]`` unless the client left."""
    try:
        async with aclosing(events) as stream:
            async for event in stream:
                if await request.is_disconnected():
                    logger.info("Client disconnected, stopping analysis", filename=filename)
                    return
                yield sse_event(event)
    except AppException as exc:
        logger.warning("Analysis failed", code=exc.code, message=exc.message)
        yield sse_event(StreamEvent(type="error", content=exc.message))
    except Exception:
        logger.exception("Analysis failed", filename=filename)
        yield sse_event(StreamEvent(type="error", content="Internal server error"))
    yield DONE_MARKER


async def _stream(
    request: Request,
    kind: AnalysisKind,
    filename: str,
    model_id: str | None,
    client_id: str,
    reader: ReaderService,
    registry: ModelRegistry,
) -> StreamingResponse:
    # Unknown files and models fail before the stream opens.
    model = registry.resolve(model_id)
    reading_file = await reader.get_file(filename, client_id)
    return StreamingResponse(
        analysis_generator(
            request, reader.stream_analysis(reading_file, kind, model), filename
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/upload", response_model=ApiResponse[ReadingFileInfo])
async def upload_file(
    client_id: ClientIdDep,
    reader: ReaderServiceDep,
    file: UploadFile = File(...),
) -> dict:
    """Upload a document to read."""
    incoming = IncomingFile(
        filename=file.filename or "",
        content=await file.read(),
        content_type=file.content_type,
    )
    return success_response(await reader.upload(incoming, client_id))


@router.get("/files", response_model=ApiResponse[list[ReadingFileInfo]])
async def list_files(client_id: ClientIdDep, reader: ReaderServiceDep) -> dict:
    """List the client's reader documents, newest first."""
    return success_response(await reader.list_files(client_id))


@router.get("/files/{filename}", response_class=FileResponse)
async def download_file(
    filename: str, client_id: ClientIdDep, reader: ReaderServiceDep
) -> FileResponse:
    """Return the stored document as an attachment."""
    reading_file = await reader.get_file(filename, client_id)
    return FileResponse(
        reading_file.path,
        media_type=reading_file.mime_type,
        filename=reading_file.filename,
    )


@router.delete("/files/{filename}", response_model=ApiResponse[None])
async def delete_file(
    filename: str, client_id: ClientIdDep, reader: ReaderServiceDep
) -> dict:
    """Delete a reader document and its stored analyses."""
    await reader.delete_file(filename, client_id)
    return success_response(None, message="File deleted")


@router.get("/summary")
@limiter.limit(settings.server.chat_rate_limit)
async def stream_summary(
    request: Request,
    client_id: ClientIdDep,
    reader: ReaderServiceDep,
    registry: RegistryDep,
    filename: str = Query(..., min_length=1),
    model_id: str | None = None,
) -> StreamingResponse:
    """Stream a summary of the document as Server-Sent Events."""
    return await _stream(request, "summary", filename, model_id, client_id, reader, registry)


@router.get("/deep-reading")
@limiter.limit(settings.server.chat_rate_limit)
async def stream_deep_reading(
    request: Request,
    client_id: ClientIdDep,
    reader: ReaderServiceDep,
    registry: RegistryDep,
    filename: str = Query(..., min_length=1),
    model_id: str | None = None,
) -> StreamingResponse:
    """Stream a page-by-page close reading of the document."""
    return await _stream(
        request, "deep_reading", filename, model_id, client_id, reader, registry
    )


@router.get("/mind-map")
@limiter.limit(settings.server.chat_rate_limit)
async def stream_mind_map(
    request: Request,
    client_id: ClientIdDep,
    reader: ReaderServiceDep,
    registry: RegistryDep,
    filename: str = Query(..., min_length=1),
    model_id: str | None = None,
) -> StreamingResponse:
    """Stream a mind map of the document as markdown headings."""
    return await _stream(request, "mind_map", filename, model_id, client_id, reader, registry)
