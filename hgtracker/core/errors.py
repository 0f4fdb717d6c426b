"""
Custom exception hierarchy for the Holy Ghost Tracker API.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

Quiz errors also carry a `kind` (QuizErrorKind). The quiz service raises
them internally and hands them back inside a QuizFailure value; only the
HTTP layer re-raises them to render the envelope.
"""
from __future__ import annotations

import enum
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class TrackerException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ImpressionNotFoundError(TrackerException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "IMPRESSION_NOT_FOUND"

    def __init__(self, impression_id: str):
        super().__init__(
            message=f"Impression {impression_id} does not exist.",
            details={"id": impression_id},
        )


class ImpressionInFutureError(TrackerException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "IMPRESSION_IN_FUTURE"

    def __init__(self, date_time: str):
        super().__init__(
            message="An impression cannot be dated in the future.",
            details={"date_time": date_time},
        )


class CategoryNotFoundError(TrackerException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "CATEGORY_NOT_FOUND"

    def __init__(self, category_id: int):
        super().__init__(
            message=f"Category {category_id} does not exist.",
            details={"id": category_id},
        )


class UnknownCategoryError(TrackerException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "UNKNOWN_CATEGORY"

    def __init__(self, missing: list[int]):
        super().__init__(
            message=f"Unknown category ids: {', '.join(str(m) for m in missing)}.",
            details={"missing": missing},
        )


class CategoryNotRemovableError(TrackerException):
    http_status = status.HTTP_409_CONFLICT
    code = "CATEGORY_NOT_REMOVABLE"

    def __init__(self, category_id: int, action: str):
        super().__init__(
            message=f"Category {category_id} is a default category and cannot be {action}.",
            details={"id": category_id, "action": action},
        )


# ---------------------------------------------------------------------------
# Quiz generation
# ---------------------------------------------------------------------------

class QuizErrorKind(str, enum.Enum):
    configuration_missing = "configuration_missing"
    invalid_input = "invalid_input"
    service_unavailable = "service_unavailable"
    rate_limited = "rate_limited"
    malformed_response = "malformed_response"
    upstream_error = "upstream_error"


class QuizError(TrackerException):
    """Base for every failure the quiz generator can report."""
    kind: QuizErrorKind = QuizErrorKind.upstream_error
    retryable: bool = False

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload.setdefault("details", {})["kind"] = self.kind.value
        return payload


class QuizConfigurationError(QuizError):
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "QUIZ_NOT_CONFIGURED"
    kind = QuizErrorKind.configuration_missing

    def __init__(self, setting: str = "OPENAI_API_KEY"):
        super().__init__(
            message="Quiz generation is not configured: the API key is missing.",
            details={"setting": setting},
        )


class QuizInputError(QuizError):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "QUIZ_INVALID_INPUT"
    kind = QuizErrorKind.invalid_input


class TransientServiceError(QuizError):
    """Rate limit or temporary unavailability; retried with backoff."""
    retryable = True

    def __init__(
        self,
        kind: QuizErrorKind,
        message: str,
        status_code: int | None = None,
        attempts: int | None = None,
    ):
        self.kind = kind
        if kind == QuizErrorKind.rate_limited:
            self.http_status = status.HTTP_429_TOO_MANY_REQUESTS
            self.code = "QUIZ_RATE_LIMITED"
        else:
            self.http_status = status.HTTP_503_SERVICE_UNAVAILABLE
            self.code = "QUIZ_SERVICE_UNAVAILABLE"
        self.status_code = status_code
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        if attempts is not None:
            details["attempts"] = attempts
        super().__init__(message=message, details=details)


class MalformedResponseError(QuizError):
    http_status = status.HTTP_502_BAD_GATEWAY
    code = "QUIZ_MALFORMED_RESPONSE"
    kind = QuizErrorKind.malformed_response

    def __init__(self, message: str, index: int | None = None):
        super().__init__(
            message=message,
            details={"index": index} if index is not None else {},
        )


class UpstreamServiceError(QuizError):
    """Non-retryable HTTP failure from the completion endpoint (400, 401, ...)."""
    http_status = status.HTTP_502_BAD_GATEWAY
    code = "QUIZ_UPSTREAM_ERROR"
    kind = QuizErrorKind.upstream_error

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        super().__init__(
            message=f"Completion endpoint rejected the request: {status_code} {reason}".strip(),
            details={"status_code": status_code},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def tracker_exception_handler(request: Request, exc: TrackerException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
