"""Chat session and temporary file API router."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from ragchat.core.config import settings
from ragchat.dependencies import (
    get_client_id,
    get_session_service,
    get_temp_document_service,
)
from ragchat.schemas.document_schema import TempUploadResponse
from ragchat.schemas.response_schema import ApiResponse, success_response
from ragchat.schemas.session_schema import (
    CreateSessionRequest,
    SessionListResponse,
    SessionMessagesResponse,
    SessionResponse,
    TempFileInfo,
    UpdateSessionRequest,
)
from ragchat.services.file_storage import IncomingFile
from ragchat.services.session_service import SessionService
from ragchat.services.temp_document_service import TempDocumentService

router = APIRouter(prefix=f"{settings.server.api_prefix}/chat", tags=["sessions"])

SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]
TempDocumentServiceDep = Annotated[
    TempDocumentService, Depends(get_temp_document_service)
]
ClientIdDep = Annotated[str, Depends(get_client_id)]


@router.post(
    "/session",
    response_model=ApiResponse[SessionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_session(
    body: CreateSessionRequest,
    service: SessionServiceDep,
) -> dict:
    """Create a new chat session."""
    chat_session = await service.create_session(
        role_name=body.role_name,
        system_prompt=body.system_prompt,
    )
    return success_response(SessionResponse.model_validate(chat_session), status=201)


@router.get("/sessions", response_model=ApiResponse[SessionListResponse])
async def list_sessions(service: SessionServiceDep) -> dict:
    """List the client's sessions, newest first."""
    return success_response(await service.list_sessions())


@router.get(
    "/sessions/{session_id}/messages",
    response_model=ApiResponse[SessionMessagesResponse],
)
async def get_session_messages(
    session_id: str,
    service: SessionServiceDep,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> dict:
    """Get one page of a session's messages, newest page first."""
    result = await service.get_messages(session_id, page=page, page_size=page_size)
    return success_response(result)


@router.patch("/sessions/{session_id}", response_model=ApiResponse[SessionResponse])
async def update_session(
    session_id: str,
    body: UpdateSessionRequest,
    service: SessionServiceDep,
) -> dict:
    """Update the role name or system prompt of a session."""
    chat_session = await service.update_session(session_id, body)
    return success_response(
        SessionResponse.model_validate(chat_session), message="Session updated"
    )


@router.delete("/sessions/{session_id}", response_model=ApiResponse[None])
async def delete_session(session_id: str, service: SessionServiceDep) -> dict:
    """Delete a session with its messages and temporary files."""
    await service.delete_session(session_id)
    return success_response(None, message="Session deleted")


# --- Temporary files ---


@router.post(
    "/sessions/{session_id}/temp-files",
    response_model=ApiResponse[TempUploadResponse],
)
async def upload_temp_file(
    session_id: str,
    client_id: ClientIdDep,
    service: SessionServiceDep,
    temp_documents: TempDocumentServiceDep,
    file: UploadFile = File(...),
    chunk_size: int | None = Form(default=None, ge=100, le=4000),
) -> dict:
    """Attach a document to the session for its next turn.

    Replaces any document already attached.
    """
    await service.get_session(session_id)
    incoming = IncomingFile(
        filename=file.filename or "",
        content=await file.read(),
        content_type=file.content_type,
    )
    result = await temp_documents.upload(
        incoming, session_id, client_id, chunk_size=chunk_size
    )
    return success_response(result)


@router.get(
    "/sessions/{session_id}/temp-files",
    response_model=ApiResponse[list[TempFileInfo]],
)
async def list_temp_files(
    session_id: str,
    client_id: ClientIdDep,
    service: SessionServiceDep,
    temp_documents: TempDocumentServiceDep,
) -> dict:
    """List the session's active temporary files."""
    await service.get_session(session_id)
    return success_response(await temp_documents.list_documents(session_id, client_id))


@router.delete(
    "/sessions/{session_id}/temp-files",
    response_model=ApiResponse[None],
)
async def cleanup_temp_files(
    session_id: str,
    client_id: ClientIdDep,
    service: SessionServiceDep,
    temp_documents: TempDocumentServiceDep,
) -> dict:
    """Remove the session's temporary files."""
    await service.get_session(session_id)
    await temp_documents.cleanup_session(session_id, client_id)
    return success_response(None, message="Temporary files removed")
