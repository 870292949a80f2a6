"""
Application context: every long-lived collaborator, wired once per app.

Created by app.main at import time, started on startup and torn down on
shutdown. Routes reach it through `request.app.state.ctx`, so tests can swap
in a context built around a fake transport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from app.core.config import Settings, settings as default_settings
from app.core.services.connectivity import ConnectivityStore, ConnectivitySupervisor, HealthPoller
from app.core.services.dashboard_service import DashboardService
from app.core.services.resource_service import ResourceService, build_resource_services
from app.integrations.agrosmart.client import AgroSmartClient

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    client: AgroSmartClient
    store: ConnectivityStore
    poller: HealthPoller
    supervisor: ConnectivitySupervisor
    resources: Dict[str, ResourceService]
    dashboard: DashboardService

    async def init(self) -> None:
        if self.settings.AGROSMART_POLLING_ENABLED:
            await self.supervisor.start()
        else:
            logger.info("Connectivity polling disabled (AGROSMART_POLLING_ENABLED=false)")
        self.dashboard.attach()

    async def teardown(self) -> None:
        self.dashboard.detach()
        await self.supervisor.stop()


def build_context(
    config: Optional[Settings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    store: Optional[ConnectivityStore] = None,
    **service_kwargs,
) -> AppContext:
    cfg = config or default_settings
    client = AgroSmartClient(
        cfg.AGROSMART_API_BASE_URL,
        timeout=cfg.AGROSMART_REQUEST_TIMEOUT,
        probe_timeout=cfg.AGROSMART_PROBE_TIMEOUT,
        health_path=cfg.AGROSMART_HEALTH_PATH,
        transport=transport,
    )
    store = store or ConnectivityStore()
    poller = HealthPoller(client, store)
    supervisor = ConnectivitySupervisor(poller, store, interval=cfg.AGROSMART_PROBE_INTERVAL)
    service_kwargs.setdefault("max_attempts", cfg.AGROSMART_REQUEST_RETRIES)
    service_kwargs.setdefault("retry_cap_seconds", cfg.AGROSMART_RETRY_CAP_SECONDS)
    resources = build_resource_services(client, store, **service_kwargs)
    return AppContext(
        settings=cfg,
        client=client,
        store=store,
        poller=poller,
        supervisor=supervisor,
        resources=resources,
        dashboard=DashboardService(resources["farms"], store),
    )
