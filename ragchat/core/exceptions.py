"""Application exception classes and handlers."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ragchat.schemas.response_schema import FieldError, error_content


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


# --- Configuration ---


class ConfigurationError(AppException):
    """Deployment is misconfigured (missing key, bad registry entry)."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="CONFIGURATION_ERROR", status_code=500)


class ModelNotConfiguredError(AppException):
    """Requested model id is not in the registry."""

    def __init__(self, model_id: str) -> None:
        super().__init__(
            message=f"Model '{model_id}' is not configured",
            code="MODEL_NOT_CONFIGURED",
            status_code=400,
        )


# --- Client identity (401) ---


class ClientIdRequiredError(AppException):
    """Request did not carry a client identifier."""

    def __init__(self) -> None:
        super().__init__(
            message="Client ID is required",
            code="CLIENT_ID_REQUIRED",
            status_code=401,
        )


# --- Not Found (404) ---


class SessionNotFoundError(AppException):
    """Chat session not found for this client."""

    def __init__(self) -> None:
        super().__init__(
            message="Session not found",
            code="SESSION_NOT_FOUND",
            status_code=404,
        )


class MessageNotFoundError(AppException):
    """Chat message not found for this client."""

    def __init__(self) -> None:
        super().__init__(
            message="Message not found",
            code="MESSAGE_NOT_FOUND",
            status_code=404,
        )


class FileNotFoundInStoreError(AppException):
    """Uploaded file not found for this client."""

    def __init__(self) -> None:
        super().__init__(
            message="File not found",
            code="FILE_NOT_FOUND",
            status_code=404,
        )


class PptOperationNotFoundError(AppException):
    """Presentation operation not found for this client."""

    def __init__(self) -> None:
        super().__init__(
            message="Presentation operation not found",
            code="PPT_OPERATION_NOT_FOUND",
            status_code=404,
        )


# --- Upload validation ---


class FileTooLargeError(AppException):
    """Uploaded file exceeds the size limit."""

    def __init__(self, max_size_mb: int) -> None:
        super().__init__(
            message=f"File exceeds the {max_size_mb} MB limit",
            code="FILE_TOO_LARGE",
            status_code=413,
        )


class UnsupportedFileTypeError(AppException):
    """Uploaded file extension is not allowed."""

    def __init__(self, extension: str) -> None:
        super().__init__(
            message=f"Unsupported file type: {extension or 'unknown'}",
            code="UNSUPPORTED_FILE_TYPE",
            status_code=415,
        )


# --- Processing (500) ---


class DocumentProcessingError(AppException):
    """Uploaded document could not be extracted or indexed."""

    def __init__(self, message: str = "Failed to process uploaded file") -> None:
        super().__init__(
            message=message,
            code="DOCUMENT_PROCESSING_ERROR",
            status_code=500,
        )


class VectorStoreError(AppException):
    """Vector index could not be read or written."""

    def __init__(self, message: str = "Vector store operation failed") -> None:
        super().__init__(message=message, code="VECTOR_STORE_ERROR", status_code=500)


class PptGenerationError(AppException):
    """The model failed to produce a presentation outline or content."""

    def __init__(self, message: str = "Failed to generate presentation") -> None:
        super().__init__(message=message, code="PPT_GENERATION_ERROR", status_code=500)


# --- Exception Handlers ---


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Central exception handler for AppException."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_content(exc.status_code, exc.code, exc.message),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures in the common error shape."""
    errors = [
        FieldError(
            field=".".join(str(part) for part in error.get("loc", ())),
            message=error.get("msg", ""),
        )
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=error_content(422, "VALIDATION_ERROR", "Validation failed", errors),
    )
