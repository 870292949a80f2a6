"""Connectivity supervisor: owns the polling task and the retry trigger."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Awaitable, Callable, Optional

from app.core.config import settings
from app.core.services.connectivity.poller import HealthPoller
from app.core.services.connectivity.state import ConnectivityStore

logger = logging.getLogger(__name__)


class ConnectivitySupervisor:
    """
    Lifecycle owner for backend health checks.

    `start()` fires an immediate probe and keeps re-probing every `interval`
    seconds while the backend is offline. `retry_connection()` is the single
    entry point for both the interval and the user's "Retry" button; at most
    one probe is in flight and concurrent callers join it.
    """

    def __init__(
        self,
        poller: HealthPoller,
        store: ConnectivityStore,
        *,
        interval: Optional[float] = None,
        sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.poller = poller
        self.store = store
        self.interval = max(0.0, float(interval if interval is not None else settings.AGROSMART_PROBE_INTERVAL))
        self._sleep = sleep_fn
        self._interval_task: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._interval_task is not None and not self._interval_task.done()

    @property
    def probe_in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def start(self) -> None:
        if self.running:
            return
        logger.info("Connectivity supervisor starting (interval=%ss)", self.interval)
        self._interval_task = asyncio.create_task(self._run(), name="agrosmart-connectivity")

    async def stop(self) -> None:
        """Cancel polling and any in-flight probe. Safe to call twice."""
        tasks = [t for t in (self._interval_task, self._inflight) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        self._interval_task = None
        self._inflight = None
        if tasks:
            logger.info("Connectivity supervisor stopped")

    async def _run(self) -> None:
        await self._check_guarded()
        while True:
            await self._sleep(self.interval)
            if self.store.state.is_server_online:
                continue
            await self._check_guarded()

    async def _check_guarded(self) -> None:
        try:
            await self.retry_connection()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Unexpected error while checking backend health")

    def _clear_inflight(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None

    async def retry_connection(self) -> bool:
        """Probe now. Joins the current probe instead of starting a second one."""
        task = self._inflight
        if task is None or task.done():
            task = asyncio.create_task(self.poller.probe())
            task.add_done_callback(self._clear_inflight)
            self._inflight = task
        else:
            logger.debug("Retry requested while a probe is in flight; joining it")
        return await asyncio.shield(task)
