"""Retry policy for idempotent backend reads."""

from __future__ import annotations

from typing import Optional

from app.integrations.agrosmart.types import TransportResult, is_retryable

_BASE_BACKOFF_SECONDS = 1.0


def should_retry(
    result: TransportResult,
    attempt: int,
    *,
    max_attempts: int = 3,
    idempotent: bool = True,
) -> bool:
    """Return whether another attempt is allowed after `attempt` (1-based) failed."""
    if not idempotent:
        return False
    safe_attempt = max(1, int(attempt))
    if safe_attempt >= max(1, int(max_attempts)):
        return False
    return is_retryable(result)


def compute_backoff(
    attempt: int,
    *,
    cap_seconds: Optional[float] = 8.0,
) -> float:
    """Exponential backoff: 1s after the first attempt, then 2s, 4s..."""
    safe_attempt = max(1, int(attempt))
    wait = _BASE_BACKOFF_SECONDS * (2 ** (safe_attempt - 1))
    if cap_seconds is not None:
        wait = min(wait, max(0.0, float(cap_seconds)))
    return wait
