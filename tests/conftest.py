"""Shared test fixtures for AgroSmart tests."""
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple

import httpx
import pytest

# Ensure the project root is in sys.path so that `app.*` imports work
# when running pytest from the repo root.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import Settings  # noqa: E402
from app.core.context import build_context  # noqa: E402

BASE_URL = "http://backend.test/api"


class FakeBackend:
    """Scriptable stand-in for the AgroSmart REST API behind httpx.MockTransport."""

    def __init__(self) -> None:
        self.up = True
        self.health_status = 200
        self.delay = 0.0
        self.routes: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.requests: List[httpx.Request] = []

    def route(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self.routes[(method.upper(), f"/api{path}")] = (status, body)

    def count(self, method: str, path: str) -> int:
        target = (method.upper(), f"/api{path}")
        return sum(1 for r in self.requests if (r.method, r.url.path) == target)

    @property
    def health_calls(self) -> int:
        return self.count("GET", "/Health")

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.up:
            raise httpx.ConnectError("Connection refused", request=request)

        path = request.url.path
        if path == "/api/Health":
            return httpx.Response(self.health_status, text="OK")

        entry = self.routes.get((request.method, path))
        if entry is None:
            return httpx.Response(404, json={"message": f"No route for {request.method} {path}"})
        status, body = entry
        if callable(body):
            body = body(request)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def test_settings():
    return Settings(
        AGROSMART_API_BASE_URL=BASE_URL,
        AGROSMART_REQUEST_RETRIES=1,
        AGROSMART_PROBE_INTERVAL=60,
        AGROSMART_PROBE_TIMEOUT=1,
        AGROSMART_INITIAL_CHECK_WAIT=2,
    )


@pytest.fixture
def make_context(backend, test_settings):
    def _make(**kwargs):
        kwargs.setdefault("sleep_fn", no_sleep)
        return build_context(test_settings, transport=backend.transport(), **kwargs)

    return _make
