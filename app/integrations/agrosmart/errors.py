"""
AgroSmart Integration - Custom Exceptions

SRP: Only error definitions, no logic.
Raised by the service layer and mapped to HTTP responses in router.py.
"""
from __future__ import annotations

from typing import Any, Optional


class AgroSmartError(Exception):
    """Base error for AgroSmart backend integration."""
    pass


class UpstreamUnavailable(AgroSmartError):
    """AgroSmart backend is not responding or connection refused."""
    pass


class UpstreamTimeout(UpstreamUnavailable):
    """Timeout while waiting for the AgroSmart backend."""
    pass


class UpstreamHttpError(AgroSmartError):
    """The backend answered with a non-2xx status."""

    def __init__(self, message: str, *, status: int, body: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class RequestCancelled(AgroSmartError):
    """The request was abandoned by its caller before completing."""
    pass


class ApiCallError(AgroSmartError):
    """A classified failure, ready to be shown to the user."""

    def __init__(self, classification: Any, *, resource: Optional[str] = None) -> None:
        super().__init__(classification.message)
        self.classification = classification
        self.resource = resource
