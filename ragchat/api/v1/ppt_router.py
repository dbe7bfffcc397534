"""Presentation generation API router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from ragchat.core.config import settings
from ragchat.core.rate_limit import limiter
from ragchat.dependencies import get_ppt_service
from ragchat.schemas.ppt_schema import (
    ContentResponse,
    GenerateContentRequest,
    GenerateOutlineRequest,
    OutlineResponse,
    PptOperationResponse,
)
from ragchat.schemas.response_schema import ApiResponse, success_response
from ragchat.services.ppt_service import PptService

router = APIRouter(prefix=f"{settings.server.api_prefix}/ppt", tags=["ppt"])

PptServiceDep = Annotated[PptService, Depends(get_ppt_service)]


@router.post("/generate-outline", response_model=ApiResponse[OutlineResponse])
@limiter.limit(settings.server.chat_rate_limit)
async def generate_outline(
    request: Request,
    body: GenerateOutlineRequest,
    ppt_service: PptServiceDep,
    model_id: str | None = None,
) -> dict:
    """Generate a numbered outline for a presentation topic."""
    result = await ppt_service.generate_outline(body.title, body.ppt_id, model_id)
    return success_response(result)


@router.post("/generate-content", response_model=ApiResponse[ContentResponse])
@limiter.limit(settings.server.chat_rate_limit)
async def generate_content(
    request: Request,
    body: GenerateContentRequest,
    ppt_service: PptServiceDep,
    model_id: str | None = None,
) -> dict:
    """Generate markdown slide content from a topic and its outline."""
    result = await ppt_service.generate_content(
        body.title, body.outline, body.ppt_id, model_id
    )
    return success_response(result)


@router.get("/operations", response_model=ApiResponse[list[PptOperationResponse]])
async def list_operations(ppt_service: PptServiceDep, ppt_id: str | None = None) -> dict:
    """List the client's operations, optionally for one presentation."""
    operations = await ppt_service.list_operations(ppt_id)
    return success_response(
        [PptOperationResponse.model_validate(operation) for operation in operations]
    )


@router.get(
    "/operations/{operation_id}", response_model=ApiResponse[PptOperationResponse]
)
async def get_operation(operation_id: int, ppt_service: PptServiceDep) -> dict:
    """Get one operation owned by the client."""
    operation = await ppt_service.get_operation(operation_id)
    return success_response(PptOperationResponse.model_validate(operation))
