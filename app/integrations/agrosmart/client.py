"""
AgroSmart Integration - HTTP Client

SRP: Only HTTP communication with the AgroSmart backend.
No connectivity bookkeeping, no business logic.

Responsibilities:
- Requests against the backend REST API (default timeout 10s)
- Health probe with its own, shorter timeout
- Translation of every outcome into a tagged TransportResult
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from .types import HttpFailure, NetworkFailure, Ok, TransportResult

logger = logging.getLogger(__name__)


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class AgroSmartClient:
    """
    HTTP client for the AgroSmart REST API.

    SRP: Only HTTP. Never raises for transport outcomes; callers receive
    Ok, NetworkFailure or HttpFailure. Task cancellation propagates untouched.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        probe_timeout: Optional[float] = None,
        health_path: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.AGROSMART_API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.AGROSMART_REQUEST_TIMEOUT
        self.probe_timeout = (
            probe_timeout if probe_timeout is not None else settings.AGROSMART_PROBE_TIMEOUT
        )
        self.health_path = health_path or settings.AGROSMART_HEALTH_PATH
        self._transport = transport

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        timeout: Optional[float] = None,
    ) -> TransportResult:
        """Perform one request and return its tagged outcome."""
        url = self.url_for(path)
        effective_timeout = timeout if timeout is not None else self.timeout
        headers = {"Accept": "application/json"}
        try:
            async with httpx.AsyncClient(
                timeout=effective_timeout,
                transport=self._transport,
            ) as client:
                r = await client.request(
                    method.upper(),
                    url,
                    params=params or None,
                    json=json,
                    headers=headers,
                )
        except httpx.TimeoutException as e:
            logger.debug("%s %s timed out after %ss: %s", method, url, effective_timeout, e)
            return NetworkFailure(
                reason=f"timeout after {effective_timeout}s",
                timed_out=True,
            )
        except httpx.TransportError as e:
            logger.debug("%s %s failed without response: %s", method, url, e)
            return NetworkFailure(reason=f"{type(e).__name__}: {e}")

        body = _parse_body(r)
        if r.is_success:
            return Ok(status=r.status_code, body=body)
        return HttpFailure(status=r.status_code, body=body)

    async def probe(self) -> TransportResult:
        """GET the health endpoint; only "did anything answer" matters."""
        return await self.send("GET", self.health_path, timeout=self.probe_timeout)
