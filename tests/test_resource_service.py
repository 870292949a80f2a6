"""Tests for backend resource access, retries and failure reporting."""

import asyncio
import json

import httpx
import pytest

from app.core.services.connectivity.state import ConnectivityStore
from app.core.services.resource_service import (
    RESOURCES,
    ResourceService,
    UnsupportedOperation,
    build_resource_services,
)
from app.integrations.agrosmart.client import AgroSmartClient
from app.integrations.agrosmart.errors import ApiCallError

from conftest import BASE_URL


class _RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def _service(backend, key="farms", *, max_attempts=3, store=None):
    client = AgroSmartClient(BASE_URL, timeout=1.0, transport=backend.transport())
    store = store or ConnectivityStore()
    store.report_success()
    sleep = _RecordingSleep()
    service = ResourceService(RESOURCES[key], client, store, max_attempts=max_attempts, sleep_fn=sleep)
    return service, store, sleep


def test_list_all_hits_all_endpoint(backend):
    farms = [{"farmId": 1, "farmName": "North"}]
    backend.route("GET", "/Farm/All", body=farms)
    service, store, _ = _service(backend)

    assert asyncio.run(service.list_all()) == farms
    assert backend.count("GET", "/Farm/All") == 1
    assert store.state.is_server_online is True


def test_list_all_non_list_body_becomes_empty(backend):
    backend.route("GET", "/Crop/All", body={"unexpected": True})
    service, _, _ = _service(backend, "crops")
    assert asyncio.run(service.list_all()) == []


def test_not_found_is_application_error_and_leaves_store(backend):
    backend.route("GET", "/Farm/3", status=404, body={"message": "Farm with ID 3 not found."})
    service, store, sleep = _service(backend)
    before = store.state

    with pytest.raises(ApiCallError) as excinfo:
        asyncio.run(service.get(3))

    classification = excinfo.value.classification
    assert classification.is_server_down is False
    assert classification.status == 404
    assert classification.message == "Farm with ID 3 not found."
    assert excinfo.value.resource == "farms"
    assert store.state is before
    assert sleep.calls == []


def test_network_failure_retried_with_backoff_then_reported_once(backend):
    backend.up = False
    service, store, sleep = _service(backend)

    with pytest.raises(ApiCallError) as excinfo:
        asyncio.run(service.list_all())

    assert excinfo.value.classification.is_server_down is True
    assert backend.count("GET", "/Farm/All") == 3
    assert sleep.calls == [1.0, 2.0]
    assert store.state.is_server_online is False
    assert store.state.retry_count == 1


def test_server_error_retried_for_reads_only(backend):
    backend.route("GET", "/Field/All", status=500, body={"message": "boom"})
    backend.route("POST", "/Field", status=500, body={"message": "boom"})
    service, store, sleep = _service(backend, "fields")

    with pytest.raises(ApiCallError):
        asyncio.run(service.list_all())
    assert backend.count("GET", "/Field/All") == 3

    with pytest.raises(ApiCallError) as excinfo:
        asyncio.run(service.create({"fieldName": "East"}))
    assert backend.count("POST", "/Field") == 1
    assert excinfo.value.classification.message == "boom"
    assert store.state.is_server_online is True
    assert sleep.calls == [1.0, 2.0]


def test_read_recovers_on_second_attempt():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503, text="Service Unavailable")
        return httpx.Response(200, json=[{"cropId": 7}])

    client = AgroSmartClient(BASE_URL, transport=httpx.MockTransport(handler))
    store = ConnectivityStore()
    store.report_success()
    sleep = _RecordingSleep()
    service = ResourceService(RESOURCES["crops"], client, store, max_attempts=3, sleep_fn=sleep)

    assert asyncio.run(service.list_all()) == [{"cropId": 7}]
    assert len(calls) == 2
    assert sleep.calls == [1.0]
    assert store.state.is_server_online is True


def test_create_update_delete_paths(backend):
    backend.route("POST", "/Farm", status=201, body=lambda r: {"farmId": 9, **json.loads(r.content)})
    backend.route("PUT", "/Farm/9", body={"farmId": 9, "farmName": "Renamed"})
    backend.route("DELETE", "/Farm/9", status=204, body=None)
    service, _, _ = _service(backend)

    created = asyncio.run(service.create({"farmName": "South", "location": "Valley"}))
    assert created == {"farmId": 9, "farmName": "South", "location": "Valley"}
    assert asyncio.run(service.update(9, {"farmName": "Renamed"}))["farmName"] == "Renamed"
    assert asyncio.run(service.delete(9)) is None
    assert backend.count("DELETE", "/Farm/9") == 1


def test_filter_without_params_falls_back_to_list(backend):
    backend.route("GET", "/Farm/All", body=[{"farmId": 1}])
    service, _, _ = _service(backend)
    assert asyncio.run(service.filter({"farmName": "", "location": None})) == [{"farmId": 1}]
    assert backend.count("GET", "/Farm/filter") == 0


def test_filter_sends_only_active_params(backend):
    backend.route("GET", "/Crop/Filter", body=[{"cropId": 2, "cropName": "Rice"}])
    service, _, _ = _service(backend, "crops")

    result = asyncio.run(service.filter({"cropName": "Rice", "season": ""}))
    assert result == [{"cropId": 2, "cropName": "Rice"}]
    request = backend.requests[-1]
    assert dict(request.url.params) == {"cropName": "Rice"}


def test_dropdown_only_where_backend_has_one(backend):
    backend.route("GET", "/Farm/dropdown", body=[{"id": 1, "name": "North"}])
    farms, _, _ = _service(backend)
    schedules, _, _ = _service(backend, "schedules")

    assert asyncio.run(farms.dropdown()) == [{"id": 1, "name": "North"}]
    with pytest.raises(UnsupportedOperation):
        asyncio.run(schedules.dropdown())


def test_users_create_through_registration_and_soft_delete(backend):
    backend.route("POST", "/Auth/Register", status=201, body={"userId": 4})
    backend.route("DELETE", "/User/SoftDelete/4", body={"userId": 4, "isActive": False})
    backend.route("DELETE", "/User/HardDelete/4", status=204)
    users, _, _ = _service(backend, "users")

    assert asyncio.run(users.create({"fullName": "Ana Perera", "email": "a@b.c"})) == {"userId": 4}
    asyncio.run(users.delete(4))
    asyncio.run(users.delete(4, hard=True))
    assert [(r.method, r.url.path) for r in backend.requests] == [
        ("POST", "/api/Auth/Register"),
        ("DELETE", "/api/User/SoftDelete/4"),
        ("DELETE", "/api/User/HardDelete/4"),
    ]


def test_hard_delete_unsupported_for_plain_resources(backend):
    farms, _, _ = _service(backend)
    with pytest.raises(UnsupportedOperation):
        asyncio.run(farms.delete(1, hard=True))
    assert backend.requests == []


def test_sensor_dropdown_path(backend):
    backend.route("GET", "/Sensor/Dropdown", body=[{"sensorId": 1}])
    sensors, _, _ = _service(backend, "sensors")
    readings, _, _ = _service(backend, "sensor-readings")
    assert asyncio.run(sensors.dropdown()) == [{"sensorId": 1}]
    with pytest.raises(UnsupportedOperation):
        asyncio.run(readings.dropdown())


def test_bulk_delete_collects_application_failures(backend):
    backend.route("DELETE", "/Crop/1", status=204)
    backend.route("DELETE", "/Crop/2", status=404, body={"message": "Crop with ID 2 not found."})
    backend.route("DELETE", "/Crop/3", status=204)
    service, _, _ = _service(backend, "crops")

    result = asyncio.run(service.bulk_delete([1, 2, 3]))
    assert result == {
        "deleted": [1, 3],
        "failed": [{"id": 2, "message": "Crop with ID 2 not found."}],
    }


def test_bulk_delete_aborts_when_backend_is_down(backend):
    backend.up = False
    service, store, _ = _service(backend, "crops")

    with pytest.raises(ApiCallError) as excinfo:
        asyncio.run(service.bulk_delete([1, 2]))
    assert excinfo.value.classification.is_server_down is True
    assert backend.count("DELETE", "/Crop/1") == 1
    assert backend.count("DELETE", "/Crop/2") == 0
    assert store.state.retry_count == 1


def test_build_resource_services_covers_every_resource(backend):
    client = AgroSmartClient(BASE_URL, transport=backend.transport())
    services = build_resource_services(client, ConnectivityStore(), max_attempts=1)
    assert set(services) == set(RESOURCES)
    assert {"sensors", "sensor-readings", "users"} <= set(services)
    assert all(s.max_attempts == 1 for s in services.values())
