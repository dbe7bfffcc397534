"""Response envelopes shared by every endpoint."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class FieldError(BaseModel):
    """One rejected request field."""

    field: str
    message: str


class ErrorResponse(BaseModel):
    """Error body: HTTP status, message and a stable machine-readable code.

    ``errors`` is only present on request validation failures.
    """

    status: int
    message: str
    code: str
    errors: list[FieldError] | None = None


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope around an endpoint's payload."""

    status: int = 200
    message: str = "Success"
    data: T | None = None


def success_response(data: T, status: int = 200, message: str = "Success") -> dict:
    """Build a success response dict for returning from endpoints."""
    return {"status": status, "message": message, "data": data}


def error_content(
    status: int,
    code: str,
    message: str,
    errors: list[FieldError] | None = None,
) -> dict:
    """Serialised ErrorResponse, without ``errors`` when there are none."""
    return ErrorResponse(
        status=status, message=message, code=code, errors=errors
    ).model_dump(exclude_none=True)
