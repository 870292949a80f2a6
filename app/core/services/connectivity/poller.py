"""Health poller: one probe attempt against the backend health endpoint."""

from __future__ import annotations

import asyncio
import logging

from app.core.services.connectivity.error_classifier import classify_error
from app.core.services.connectivity.state import ConnectivityStore
from app.integrations.agrosmart.client import AgroSmartClient
from app.integrations.agrosmart.types import Ok, describe

logger = logging.getLogger(__name__)


class HealthPoller:
    """Probes the backend and writes the outcome to the connectivity store."""

    def __init__(self, client: AgroSmartClient, store: ConnectivityStore) -> None:
        self.client = client
        self.store = store

    async def probe(self) -> bool:
        """
        Perform one probe.

        Returns True when the backend answered, False when it did not. Probe
        failures are never raised; cancellation of the calling task
        propagates without touching state.
        """
        seq = self.store.begin_probe()
        try:
            result = await self.client.probe()
        except asyncio.CancelledError:
            logger.debug("Health probe #%d cancelled", seq)
            raise

        if isinstance(result, Ok):
            logger.debug("Health probe #%d OK (%s)", seq, describe(result))
            self.store.report_success(seq)
            return True

        classification = classify_error(result)
        if classification.is_server_down:
            logger.warning("Health probe #%d failed: %s", seq, describe(result))
            self.store.report_failure(seq)
            return False

        # The backend answered, even if the health route itself misbehaved.
        logger.info("Health probe #%d answered with %s; treating backend as up", seq, describe(result))
        self.store.report_success(seq)
        return True
