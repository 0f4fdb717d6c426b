"""
Error envelope shared by every router, for the OpenAPI docs.

Handlers in hgtracker.core.errors build the JSON directly; these models
only describe it.
"""
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """`{code, message, details}`; quiz errors add `details.kind`."""
    code: str = Field(examples=["IMPRESSION_NOT_FOUND"])
    message: str
    details: Optional[dict[str, Any]] = Field(
        default=None,
        description="Error-specific context. VALIDATION_ERROR lists `{field, message, type}` items under `errors`.",
    )


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    422: {"model": ErrorResponse, "description": "Validation or domain rule failure."},
    500: {"model": ErrorResponse, "description": "Unexpected server error."},
}
