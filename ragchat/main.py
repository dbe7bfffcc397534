"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from ragchat.api.v1.chat_router import router as chat_router
from ragchat.api.v1.knowledge_router import router as knowledge_router
from ragchat.api.v1.ppt_router import router as ppt_router
from ragchat.api.v1.reader_router import router as reader_router
from ragchat.api.v1.session_router import router as session_router
from ragchat.core.config import settings
from ragchat.core.database import Base, engine
from ragchat.core.exceptions import (
    AppException,
    app_exception_handler,
    validation_exception_handler,
)
from ragchat.core.log_config import configure_logging
from ragchat.core.middleware import ClientIdMiddleware
from ragchat.core.rate_limit import limiter, rate_limit_exceeded_handler
from ragchat.models import (  # noqa: F401
    chat_message,
    chat_session,
    ppt_operation,
    reading_file,
    session_temp_file,
)
from ragchat.schemas.response_schema import ApiResponse, success_response
from ragchat.services.model_registry import build_model_registry

logger = structlog.get_logger()


def _ensure_storage_dirs() -> None:
    for path in (
        settings.vector_store.path,
        settings.file_upload.upload_path,
        settings.file_upload.temp_upload_path,
        settings.file_upload.reader_upload_path,
    ):
        path.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    configure_logging(settings.app)
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.app.env,
        models=list(settings.llm.models),
    )
    app.state.model_registry = build_model_registry(settings.llm)
    _ensure_storage_dirs()
    if settings.app.is_development:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app.name,
    description="Retrieval-augmented chat service: web search, knowledge base and "
    "per-session document retrieval with streamed answers",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.app.debug,
)

# Rate limiter
app.state.limiter = limiter

# Exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]

# Middleware (registration order: inner→outer, execution order: outer→inner)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(ClientIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.app.is_development else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Session-Id", "X-New-Session"],
)


@app.get("/health", response_model=ApiResponse[dict])
async def health_check() -> dict:
    """Health check endpoint."""
    return success_response({"status": "healthy"})


@app.get("/", response_model=ApiResponse[dict])
async def root() -> dict:
    """Root endpoint."""
    return success_response(
        {
            "app": settings.app.name,
            "version": "0.1.0",
            "docs": "/docs",
        }
    )


# Register routers
app.include_router(chat_router)
app.include_router(session_router)
app.include_router(knowledge_router)
app.include_router(reader_router)
app.include_router(ppt_router)
