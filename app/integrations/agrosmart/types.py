"""
AgroSmart Integration - Transport results

Every backend call resolves to exactly one of these tagged results instead of
raising. Consumers branch on the type, never on the shape of an exception.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Ok:
    """A 2xx response."""
    status: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class NetworkFailure:
    """No response arrived at all (refused, DNS, timeout, reset)."""
    reason: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class HttpFailure:
    """A response arrived with a non-2xx status."""
    status: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class Cancelled:
    """The calling task was cancelled mid-flight."""
    reason: str = "cancelled"

    @property
    def ok(self) -> bool:
        return False


Failure = Union[NetworkFailure, HttpFailure, Cancelled]
TransportResult = Union[Ok, NetworkFailure, HttpFailure, Cancelled]


def is_retryable(result: TransportResult) -> bool:
    """Network failures and 5xx answers are worth another attempt."""
    if isinstance(result, NetworkFailure):
        return True
    if isinstance(result, HttpFailure):
        return result.status >= 500
    return False


def describe(result: TransportResult) -> str:
    if isinstance(result, (Ok, HttpFailure)):
        return f"HTTP {result.status}"
    if isinstance(result, NetworkFailure):
        return f"network failure ({'timeout' if result.timed_out else result.reason})"
    return "cancelled"
