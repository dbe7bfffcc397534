"""Presentation outline and slide content generation."""

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from sqlalchemy.ext.asyncio import AsyncSession

from ragchat.core.exceptions import PptGenerationError, PptOperationNotFoundError
from ragchat.models.ppt_operation import PptOperation
from ragchat.repositories.ppt_operation_repo import PptOperationRepository
from ragchat.schemas.ppt_schema import ContentResponse, OutlineResponse
from ragchat.services.model_registry import ModelRegistry
from ragchat.services.persistence import strip_leading_blank_line

logger = structlog.get_logger()

PPT_WRITER = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are an expert presentation writer. Produce high-quality slide "
            "material that follows the user's instructions exactly.",
        ),
        ("human", "{input}"),
    ]
)

# Used once when the first attempt fails.
PPT_WRITER_RETRY = ChatPromptTemplate.from_messages(
    [
        ("system", "Write presentation material. Be concise and clear."),
        ("human", "{input}"),
    ]
)

OUTLINE_INSTRUCTIONS = """Write a detailed presentation outline for this topic:

{title}

Requirements:
1. Derive a fitting presentation title from the topic.
2. Use four to seven main sections, scaled to the complexity of the topic.
3. Give each section two to four sub-points.
4. Number the hierarchy clearly (1., 1.1, 1.2, ...).
5. Keep the sections logical, connected and relevant to the topic.

Output only the outline, without explanations."""

CONTENT_INSTRUCTIONS = """Write the slide content for this presentation.

Title: {title}
Outline:
{outline}

Requirements:
1. Write one slide section for every outline section.
2. Use markdown headings from # (presentation title) down to #### for the hierarchy.
3. Put the points under each heading in a list using "-" markers.
4. Keep the content accurate, concise and logically connected.
5. Do not exceed 30 slides.

Example:
# Presentation title
## 1. Section
### 1.1 Sub-section
#### 1.1.1 Detail
- Point one
- Point two"""


class PptService:
    """Generates presentation outlines and content, logging every attempt.

    Each call records a ``PptOperation`` before the model runs and marks it
    completed with either the result or the error.
    """

    def __init__(
        self, session: AsyncSession, registry: ModelRegistry, client_id: str
    ) -> None:
        self._session = session
        self._repo = PptOperationRepository(session)
        self._registry = registry
        self._client_id = client_id

    async def generate_outline(
        self, title: str, ppt_id: str | None = None, model_id: str | None = None
    ) -> OutlineResponse:
        model = self._registry.resolve(model_id)
        operation = await self._start("outline", title=title, ppt_id=ppt_id)
        outline = await self._run(
            operation,
            model,
            OUTLINE_INSTRUCTIONS.format(title=title),
            "Failed to generate presentation outline",
        )
        await self._repo.complete(operation.id, outline=outline)
        await self._session.commit()
        return OutlineResponse(
            outline=outline, operation_id=operation.id, ppt_id=operation.ppt_id
        )

    async def generate_content(
        self,
        title: str,
        outline: str,
        ppt_id: str | None = None,
        model_id: str | None = None,
    ) -> ContentResponse:
        model = self._registry.resolve(model_id)
        operation = await self._start("content", title=title, outline=outline, ppt_id=ppt_id)
        content = await self._run(
            operation,
            model,
            CONTENT_INSTRUCTIONS.format(title=title, outline=outline),
            "Failed to generate presentation content",
        )
        await self._repo.complete(operation.id, content=content)
        await self._session.commit()
        return ContentResponse(
            content=content, operation_id=operation.id, ppt_id=operation.ppt_id
        )

    async def get_operation(self, operation_id: int) -> PptOperation:
        operation = await self._repo.find(operation_id, self._client_id)
        if operation is None:
            raise PptOperationNotFoundError()
        return operation

    async def list_operations(self, ppt_id: str | None = None) -> list[PptOperation]:
        """All operations of the client, or those of one presentation."""
        if ppt_id:
            return await self._repo.find_by_ppt(ppt_id, self._client_id)
        return await self._repo.find_by_client(self._client_id)

    async def _start(self, type: str, **values: str | None) -> PptOperation:
        operation = await self._repo.create(client_id=self._client_id, type=type, **values)
        await self._session.commit()
        logger.info(
            "Presentation operation started",
            operation_id=operation.id,
            ppt_id=operation.ppt_id,
            type=type,
        )
        return operation

    async def _run(
        self,
        operation: PptOperation,
        model: BaseChatModel,
        instructions: str,
        failure_message: str,
    ) -> str:
        try:
            return await _write(model, instructions)
        except Exception as exc:
            logger.exception(
                "Presentation generation failed", operation_id=operation.id
            )
            await self._repo.complete(operation.id, error=failure_message)
            await self._session.commit()
            raise PptGenerationError(failure_message) from exc


async def _write(model: BaseChatModel, instructions: str) -> str:
    try:
        response = await (PPT_WRITER | model).ainvoke({"input": instructions})
    except Exception:
        logger.warning("Presentation generation failed, retrying", exc_info=True)
        response = await (PPT_WRITER_RETRY | model).ainvoke({"input": instructions})
    return strip_leading_blank_line(str(response.content))
