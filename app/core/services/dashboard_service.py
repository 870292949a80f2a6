"""Dashboard widgets backed by gated loaders."""

from __future__ import annotations

import logging
from typing import Any, Dict

from app.core.services.connectivity.state import ConnectivityStore
from app.core.services.gated_loader import GatedLoader
from app.core.services.resource_service import ResourceService
from app.core.services.table_service import farm_analytics

logger = logging.getLogger(__name__)


class DashboardService:
    """Farm summary that re-reads the backend per view and re-fetches once on recovery."""

    def __init__(self, farms: ResourceService, store: ConnectivityStore) -> None:
        self.store = store
        self.farms_loader = GatedLoader(store, farms.list_all, name="farm dashboard")

    def attach(self) -> None:
        self.farms_loader.attach()

    def detach(self) -> None:
        self.farms_loader.detach()

    async def farm_summary(self) -> Dict[str, Any]:
        loader = self.farms_loader
        state = self.store.state
        if loader.loading:
            await loader.wait()
        elif state.is_server_online:
            # Each view re-reads the list; the gated loader only covers startup and recovery.
            await loader.reload()

        farms = loader.data if isinstance(loader.data, list) else []
        return {
            "analytics": farm_analytics(farms),
            "offline": self.store.state.is_offline,
            "checking": self.store.state.is_initial_check,
            "error": loader.error.to_dict() if loader.error else None,
        }
