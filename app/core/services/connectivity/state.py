"""
AgroSmart Connectivity State: single source of truth for backend reachability.

One store per application context. Writers are the health poller, the retry
trigger and `handle_api_error`; every screen reads it and subscribes to
changes (e.g. to re-fetch after the backend comes back).
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional

from app.core.services.connectivity.error_classifier import (
    ApiErrorClassification,
    classify_error,
)

logger = logging.getLogger(__name__)


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


@dataclass(frozen=True)
class ConnectivityState:
    is_server_online: bool = False
    is_initial_check: bool = True
    last_checked: Optional[dt.datetime] = None
    retry_count: int = 0

    @property
    def is_offline(self) -> bool:
        """Known to be unreachable (not merely unchecked)."""
        return not self.is_initial_check and not self.is_server_online

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isServerOnline": self.is_server_online,
            "isInitialCheck": self.is_initial_check,
            "lastChecked": self.last_checked.isoformat() if self.last_checked else None,
            "retryCount": self.retry_count,
        }


Listener = Callable[[ConnectivityState, ConnectivityState], None]


class ConnectivityStore:
    """Mutable holder of the current ConnectivityState snapshot."""

    def __init__(self, *, now_fn: Callable[[], dt.datetime] = _utc_now) -> None:
        self._now_fn = now_fn
        self._state = ConnectivityState()
        self._issued_seq = 0
        self._applied_seq = 0
        self._listeners: List[Listener] = []

    @property
    def state(self) -> ConnectivityState:
        return self._state

    def snapshot(self) -> ConnectivityState:
        return self._state

    def to_dict(self) -> Dict[str, Any]:
        return self._state.to_dict()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener(previous, current)`; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _apply(self, new_state: ConnectivityState) -> None:
        previous = self._state
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(previous, new_state)
            except Exception:
                logger.exception("Connectivity listener %r failed", listener)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def begin_probe(self) -> int:
        """Reserve the sequence number for a probe about to be issued."""
        self._issued_seq += 1
        return self._issued_seq

    def _is_stale(self, seq: Optional[int]) -> bool:
        return seq is not None and seq < self._applied_seq

    def _checked_at(self) -> dt.datetime:
        now = self._now_fn()
        previous = self._state.last_checked
        if previous is not None and now < previous:
            return previous
        return now

    def _mark_applied(self, seq: Optional[int]) -> None:
        if seq is not None:
            self._applied_seq = max(self._applied_seq, seq)

    def report_success(self, seq: Optional[int] = None) -> bool:
        """Record a successful probe. Returns False when the completion was stale."""
        if self._is_stale(seq):
            logger.debug("Ignoring stale probe success (seq=%s, applied=%s)", seq, self._applied_seq)
            self._apply(replace(self._state, last_checked=self._checked_at()))
            return False

        was_offline = self._state.is_offline
        self._mark_applied(seq)
        self._apply(
            ConnectivityState(
                is_server_online=True,
                is_initial_check=False,
                last_checked=self._checked_at(),
                retry_count=0,
            )
        )
        if was_offline:
            logger.info("AgroSmart backend is reachable again")
        return True

    def report_failure(self, seq: Optional[int] = None) -> bool:
        """Record a failed probe. Returns False when the completion was stale."""
        if self._is_stale(seq):
            logger.debug("Ignoring stale probe failure (seq=%s, applied=%s)", seq, self._applied_seq)
            self._apply(replace(self._state, last_checked=self._checked_at()))
            return False

        self._mark_applied(seq)
        retry_count = self._state.retry_count + 1
        self._apply(
            ConnectivityState(
                is_server_online=False,
                is_initial_check=False,
                last_checked=self._checked_at(),
                retry_count=retry_count,
            )
        )
        logger.warning("AgroSmart backend unreachable (consecutive failures: %d)", retry_count)
        return True

    def handle_api_error(self, error: Any) -> ApiErrorClassification:
        """
        Route any failed backend call through the shared classifier.

        Only a server-down classification mutates connectivity state;
        application errors and cancellations leave it untouched.
        """
        classification = classify_error(error)
        if classification.is_server_down:
            self.report_failure()
        elif not classification.is_cancelled:
            logger.info(
                "Backend application error (status=%s): %s",
                classification.status,
                classification.message,
            )
        return classification

    # ------------------------------------------------------------------
    # Waiting
    # ------------------------------------------------------------------

    async def wait_initial_check(self, timeout: Optional[float] = None) -> bool:
        """Wait until the first probe has completed. Returns False on timeout."""
        if not self._state.is_initial_check:
            return True

        loop = asyncio.get_running_loop()
        done: asyncio.Future = loop.create_future()

        def _resolve() -> None:
            if not done.done():
                done.set_result(True)

        def _listener(_previous: ConnectivityState, current: ConnectivityState) -> None:
            if not current.is_initial_check:
                loop.call_soon_threadsafe(_resolve)

        unsubscribe = self.subscribe(_listener)
        try:
            await asyncio.wait_for(done, timeout)
            return True
        except asyncio.TimeoutError:
            return False
        finally:
            unsubscribe()
