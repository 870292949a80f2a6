"""Classification of failed backend calls: server down vs. application error."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import httpx

from app.integrations.agrosmart.errors import (
    ApiCallError,
    RequestCancelled,
    UpstreamHttpError,
    UpstreamUnavailable,
)
from app.integrations.agrosmart.types import Cancelled, HttpFailure, NetworkFailure

SERVER_UNAVAILABLE_MESSAGE = (
    "Server is currently unavailable. Please check your connection and try again."
)
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred."

# ASP.NET answers with camelCase or PascalCase objects, ProblemDetails, or plain text.
_MESSAGE_FIELDS = ("message", "Message", "error", "Error", "title", "detail")


class ErrorKind(str, Enum):
    SERVER_DOWN = "SERVER_DOWN"
    APPLICATION = "APPLICATION"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class ApiErrorClassification:
    kind: ErrorKind
    message: str
    status: Optional[int] = None

    @property
    def is_server_down(self) -> bool:
        return self.kind == ErrorKind.SERVER_DOWN

    @property
    def is_cancelled(self) -> bool:
        return self.kind == ErrorKind.CANCELLED

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "isServerDown": self.is_server_down,
            "message": self.message,
            "status": self.status,
        }


def extract_message(body: Any, status: Optional[int] = None) -> str:
    """Pull a human-readable message out of an error response body."""
    if isinstance(body, dict):
        for key in _MESSAGE_FIELDS:
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    elif isinstance(body, str) and body.strip() and not body.lstrip().startswith("<"):
        return body.strip()
    if status is not None:
        return f"An error occurred (HTTP {status})."
    return UNEXPECTED_ERROR_MESSAGE


def _server_down() -> ApiErrorClassification:
    return ApiErrorClassification(kind=ErrorKind.SERVER_DOWN, message=SERVER_UNAVAILABLE_MESSAGE)


def _application(status: Optional[int], body: Any) -> ApiErrorClassification:
    return ApiErrorClassification(
        kind=ErrorKind.APPLICATION,
        message=extract_message(body, status),
        status=status,
    )


def _cancelled() -> ApiErrorClassification:
    return ApiErrorClassification(kind=ErrorKind.CANCELLED, message="")


def classify_error(error: Any) -> ApiErrorClassification:
    """Classify a failed call. Pure: no retries, no state changes."""
    if isinstance(error, ApiCallError):
        return error.classification

    # Tagged transport results
    if isinstance(error, NetworkFailure):
        return _server_down()
    if isinstance(error, HttpFailure):
        return _application(error.status, error.body)
    if isinstance(error, Cancelled):
        return _cancelled()

    # Exceptions
    if isinstance(error, (asyncio.CancelledError, RequestCancelled)):
        return _cancelled()
    if isinstance(error, UpstreamUnavailable):
        return _server_down()
    if isinstance(error, UpstreamHttpError):
        return _application(error.status, error.body)
    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        try:
            body = response.json()
        except ValueError:
            body = response.text
        return _application(response.status_code, body)
    if isinstance(error, (httpx.TransportError, asyncio.TimeoutError, ConnectionError)):
        return _server_down()

    return ApiErrorClassification(kind=ErrorKind.APPLICATION, message=UNEXPECTED_ERROR_MESSAGE)
