"""
Gated data loading for screens that depend on the backend.

A loader never fetches while the first health probe is still pending. Once
it resolves, an online backend gets exactly one fetch; an offline backend
leaves the loader blocked until the store reports recovery, which triggers
exactly one re-fetch.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from app.core.services.connectivity.error_classifier import ApiErrorClassification
from app.core.services.connectivity.state import ConnectivityState, ConnectivityStore
from app.integrations.agrosmart.errors import ApiCallError
from app.integrations.agrosmart.types import Cancelled

logger = logging.getLogger(__name__)


class GatedLoader:
    """Holds the data of one screen and keeps it in step with connectivity."""

    def __init__(
        self,
        store: ConnectivityStore,
        fetch: Callable[[], Awaitable[Any]],
        *,
        name: str = "screen",
    ) -> None:
        self.store = store
        self._fetch = fetch
        self.name = name
        self.data: Any = None
        self.error: Optional[ApiErrorClassification] = None
        self.blocked = False
        self.fetch_count = 0
        self._task: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    @property
    def loading(self) -> bool:
        return self._task is not None and not self._task.done()

    def attach(self) -> None:
        """Start following the store. Must be called from a running event loop."""
        if self.attached:
            return
        self._unsubscribe = self.store.subscribe(self._on_change)
        state = self.store.state
        if state.is_initial_check:
            return
        if state.is_server_online:
            self._schedule_fetch()
        else:
            self.blocked = True

    def detach(self) -> None:
        """Stop following the store and abandon any fetch in flight."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _on_change(self, previous: ConnectivityState, current: ConnectivityState) -> None:
        if current.is_initial_check:
            return
        if previous.is_initial_check:
            if current.is_server_online:
                self._schedule_fetch()
            else:
                self.blocked = True
            return
        if current.is_server_online and not previous.is_server_online and self.blocked:
            logger.info("Backend recovered; reloading %s", self.name)
            self._schedule_fetch()
        elif not current.is_server_online:
            self.blocked = True

    def _schedule_fetch(self) -> None:
        if self.loading:
            return
        self.blocked = False
        self._task = asyncio.get_running_loop().create_task(self.reload())

    async def reload(self) -> Any:
        """Fetch now, routing any failure through the shared error handler."""
        self.fetch_count += 1
        try:
            self.data = await self._fetch()
        except asyncio.CancelledError:
            # Classified as a cancellation, so shared state is left alone.
            self.store.handle_api_error(Cancelled(reason=f"{self.name} detached"))
            raise
        except ApiCallError as e:
            # Already reported to the store by the service layer.
            return self._record_failure(e.classification)
        except Exception as e:
            return self._record_failure(self.store.handle_api_error(e))
        self.error = None
        return self.data

    def _record_failure(self, classification: ApiErrorClassification) -> None:
        if classification.is_server_down:
            self.blocked = True
        self.error = classification
        return None

    async def wait(self) -> Any:
        """Await the fetch in flight, if any."""
        task = self._task
        if task is not None:
            await task
        return self.data
