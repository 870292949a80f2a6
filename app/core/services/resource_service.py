"""
Resource Service - Orchestration Layer

SRP: CRUD access to the AgroSmart backend resources.
Delegates HTTP to the client and every failure to the connectivity store,
so server-down vs. application errors are decided in one place.

Responsibilities:
- list / get / create / update / delete / filter / dropdown per resource
- Retry with backoff for idempotent reads (network failure or 5xx)
- Raising ApiCallError with the shared classification on failure
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from app.core.config import settings
from app.core.services.connectivity.retry_policy import compute_backoff, should_retry
from app.core.services.connectivity.state import ConnectivityStore
from app.integrations.agrosmart.client import AgroSmartClient
from app.integrations.agrosmart.errors import AgroSmartError, ApiCallError
from app.integrations.agrosmart.types import Ok, TransportResult, describe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceDef:
    """Where a resource lives on the backend and which variants it exposes."""
    key: str
    label: str
    path: str
    filter_path: Optional[str] = None
    dropdown_path: Optional[str] = None
    # Paths that do not follow the `{path}` / `{path}/{id}` convention.
    create_path: Optional[str] = None
    delete_path: Optional[str] = None
    hard_delete_path: Optional[str] = None

    @property
    def has_dropdown(self) -> bool:
        return self.dropdown_path is not None

    def create_url(self) -> str:
        return self.create_path or self.path

    def delete_url(self, record_id: Any, *, hard: bool = False) -> str:
        template = self.hard_delete_path if hard else self.delete_path
        if template is None:
            if hard:
                raise UnsupportedOperation(f"{self.label} has no hard delete endpoint")
            template = self.path + "/{id}"
        return template.format(id=record_id)


class UnsupportedOperation(AgroSmartError):
    """The backend does not expose this operation for the resource."""
    pass


RESOURCES: Dict[str, ResourceDef] = {
    d.key: d
    for d in (
        ResourceDef("farms", "Farm", "/Farm", "/Farm/filter", "/Farm/dropdown"),
        ResourceDef("fields", "Field", "/Field", "/Field/filter", "/Field/dropdown"),
        ResourceDef("crops", "Crop", "/Crop", "/Crop/Filter", "/Crop/dropdown"),
        ResourceDef("field-wise-crops", "Field-wise crop", "/FieldWiseCrop", "/FieldWiseCrop/filter"),
        ResourceDef("schedules", "Schedule", "/Schedule", "/Schedule/Filter"),
        ResourceDef("weather", "Weather record", "/WeatherData", "/WeatherData/Filter"),
        ResourceDef("smart-insights", "Smart insight", "/SmartInsight", "/SmartInsight/Filter"),
        ResourceDef("sensors", "Sensor", "/Sensor", "/Sensor/Filter", "/Sensor/Dropdown"),
        ResourceDef("sensor-readings", "Sensor reading", "/SensorReading", "/SensorReading/Filter"),
        ResourceDef(
            "users",
            "User",
            "/User",
            "/User/Filter",
            create_path="/Auth/Register",
            delete_path="/User/SoftDelete/{id}",
            hard_delete_path="/User/HardDelete/{id}",
        ),
    )
}


class ResourceService:
    """CRUD operations for one backend resource."""

    def __init__(
        self,
        definition: ResourceDef,
        client: AgroSmartClient,
        store: ConnectivityStore,
        *,
        max_attempts: Optional[int] = None,
        retry_cap_seconds: Optional[float] = None,
        sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.definition = definition
        self.client = client
        self.store = store
        self.max_attempts = max(
            1, int(max_attempts if max_attempts is not None else settings.AGROSMART_REQUEST_RETRIES)
        )
        self.retry_cap_seconds = (
            retry_cap_seconds if retry_cap_seconds is not None else settings.AGROSMART_RETRY_CAP_SECONDS
        )
        self._sleep = sleep_fn

    async def _call(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        idempotent = method.upper() == "GET"
        attempt = 1
        while True:
            result: TransportResult = await self.client.send(method, path, params=params, json=json)
            if isinstance(result, Ok):
                return result.body
            if not should_retry(result, attempt, max_attempts=self.max_attempts, idempotent=idempotent):
                break
            wait = compute_backoff(attempt, cap_seconds=self.retry_cap_seconds)
            logger.info(
                "%s %s failed (%s); retrying in %.1fs (attempt %d/%d)",
                method, path, describe(result), wait, attempt + 1, self.max_attempts,
            )
            await self._sleep(wait)
            attempt += 1

        classification = self.store.handle_api_error(result)
        raise ApiCallError(classification, resource=self.definition.key)

    @staticmethod
    def _as_list(body: Any) -> List[Any]:
        return body if isinstance(body, list) else []

    async def list_all(self) -> List[Any]:
        return self._as_list(await self._call("GET", f"{self.definition.path}/All"))

    async def get(self, record_id: Any) -> Any:
        return await self._call("GET", f"{self.definition.path}/{record_id}")

    async def create(self, payload: Dict[str, Any]) -> Any:
        return await self._call("POST", self.definition.create_url(), json=payload)

    async def update(self, record_id: Any, payload: Dict[str, Any]) -> Any:
        return await self._call("PUT", f"{self.definition.path}/{record_id}", json=payload)

    async def delete(self, record_id: Any, *, hard: bool = False) -> Any:
        return await self._call("DELETE", self.definition.delete_url(record_id, hard=hard))

    async def bulk_delete(self, record_ids: List[Any]) -> Dict[str, List[Any]]:
        """Delete records one by one; an unreachable backend aborts the batch."""
        deleted: List[Any] = []
        failed: List[Dict[str, Any]] = []
        for record_id in record_ids:
            try:
                await self.delete(record_id)
            except ApiCallError as e:
                if e.classification.is_server_down:
                    raise
                failed.append({"id": record_id, "message": e.classification.message})
            else:
                deleted.append(record_id)
        return {"deleted": deleted, "failed": failed}

    async def filter(self, params: Dict[str, Any]) -> List[Any]:
        """Server-side filtering; falls back to the full list when no filters are set."""
        active = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        if not active:
            return await self.list_all()
        if not self.definition.filter_path:
            raise UnsupportedOperation(f"{self.definition.label} has no filter endpoint")
        return self._as_list(await self._call("GET", self.definition.filter_path, params=active))

    async def dropdown(self) -> List[Any]:
        if not self.definition.has_dropdown:
            raise UnsupportedOperation(f"{self.definition.label} has no dropdown endpoint")
        return self._as_list(await self._call("GET", self.definition.dropdown_path))


def build_resource_services(
    client: AgroSmartClient,
    store: ConnectivityStore,
    **kwargs: Any,
) -> Dict[str, ResourceService]:
    return {key: ResourceService(d, client, store, **kwargs) for key, d in RESOURCES.items()}
