"""Knowledge base API router."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from langchain_core.documents import Document

from ragchat.core.config import settings
from ragchat.dependencies import get_client_id, get_knowledge_base_service
from ragchat.schemas.document_schema import (
    AddDocumentsRequest,
    DocumentSearchResult,
    KnowledgeBaseUploadResponse,
    StoredFileInfo,
)
from ragchat.schemas.response_schema import ApiResponse, success_response
from ragchat.services.file_storage import IncomingFile
from ragchat.services.knowledge_base_service import KnowledgeBaseService

router = APIRouter(
    prefix=f"{settings.server.api_prefix}/chat", tags=["knowledge-base"]
)

KnowledgeBaseDep = Annotated[KnowledgeBaseService, Depends(get_knowledge_base_service)]
ClientIdDep = Annotated[str, Depends(get_client_id)]


@router.post(
    "/files/upload",
    response_model=ApiResponse[KnowledgeBaseUploadResponse],
)
async def upload_file(
    client_id: ClientIdDep,
    knowledge_base: KnowledgeBaseDep,
    file: UploadFile = File(...),
    chunk_size: int | None = Form(default=None, ge=100, le=4000),
) -> dict:
    """Upload a file into the client's knowledge base."""
    incoming = IncomingFile(
        filename=file.filename or "",
        content=await file.read(),
        content_type=file.content_type,
    )
    result = await knowledge_base.upload(incoming, client_id, chunk_size=chunk_size)
    return success_response(result)


@router.get("/files", response_model=ApiResponse[list[StoredFileInfo]])
async def list_files(client_id: ClientIdDep, knowledge_base: KnowledgeBaseDep) -> dict:
    """List the client's knowledge-base files."""
    return success_response(await knowledge_base.list_files(client_id))


@router.delete("/files/{filename}", response_model=ApiResponse[None])
async def delete_file(
    filename: str,
    client_id: ClientIdDep,
    knowledge_base: KnowledgeBaseDep,
) -> dict:
    """Delete a knowledge-base file and rebuild the index."""
    await knowledge_base.delete_file(client_id, filename)
    return success_response(None, message="File deleted")


@router.post("/documents", response_model=ApiResponse[dict])
async def add_documents(
    body: AddDocumentsRequest,
    client_id: ClientIdDep,
    knowledge_base: KnowledgeBaseDep,
) -> dict:
    """Index raw text documents."""
    documents = [
        Document(page_content=doc.content, metadata=doc.metadata)
        for doc in body.documents
    ]
    added = await knowledge_base.add_documents(client_id, documents)
    return success_response({"added": added})


@router.get(
    "/documents/search",
    response_model=ApiResponse[list[DocumentSearchResult]],
)
async def search_documents(
    client_id: ClientIdDep,
    knowledge_base: KnowledgeBaseDep,
    query: str = Query(..., min_length=1),
    k: int = Query(default=3, ge=1, le=20),
) -> dict:
    """Similarity search over the client's knowledge base."""
    documents = await knowledge_base.search(client_id, query, k=k)
    return success_response(
        [
            DocumentSearchResult(content=doc.page_content, metadata=doc.metadata)
            for doc in documents
        ]
    )
