"""
API Router - BFF endpoints for frontend consumption.

Frontend calls `/api/*` only. AgroSmart shell handles:
- Backend connectivity status, banner and retry
- CRUD for farms, fields, crops, schedules, weather, smart insights, users
- Client-side filtering, pagination and CSV export
- Dashboard analytics
"""

from __future__ import annotations

import logging
from typing import Any, Dict, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from app.core.context import AppContext
from app.core.services.connectivity.error_classifier import SERVER_UNAVAILABLE_MESSAGE
from app.core.services.connectivity.presenter import build_banner, build_offline_state
from app.core.services.resource_service import RESOURCES, ResourceService, UnsupportedOperation
from app.core.services.table_service import (
    columns_for,
    export_filename,
    filter_records,
    paginate,
    records_to_csv,
)
from app.integrations.agrosmart.errors import ApiCallError
from app.modules.api.models import BulkDeleteIn, RecordIn, missing_required

_logger = logging.getLogger(__name__)

router = APIRouter()

_RESERVED_PARAMS = {"page", "page_size", "server_filter"}


def get_context(request: Request) -> AppContext:
    return request.app.state.ctx


def _status_payload(ctx: AppContext) -> Dict[str, Any]:
    state = ctx.store.state
    payload = state.to_dict()
    payload["banner"] = build_banner(state)
    payload["probeInFlight"] = ctx.supervisor.probe_in_flight
    return payload


def _offline_detail(ctx: AppContext, message: str = SERVER_UNAVAILABLE_MESSAGE) -> Dict[str, Any]:
    return {
        "message": message,
        "offline": True,
        "offlineState": build_offline_state(),
        "status": ctx.store.to_dict(),
    }


def _raise_for(ctx: AppContext, error: ApiCallError) -> NoReturn:
    classification = error.classification
    if classification.is_server_down:
        raise HTTPException(status_code=503, detail=_offline_detail(ctx, classification.message))
    status = classification.status
    if status is None or not 400 <= status < 600:
        status = 502
    raise HTTPException(status_code=status, detail=classification.message)


async def _ensure_reachable(ctx: AppContext) -> None:
    """Gate data access on the first probe and on the backend being online."""
    if ctx.store.state.is_initial_check:
        if ctx.supervisor.running:
            checked = await ctx.store.wait_initial_check(ctx.settings.AGROSMART_INITIAL_CHECK_WAIT)
        else:
            await ctx.supervisor.retry_connection()
            checked = not ctx.store.state.is_initial_check
        if not checked:
            raise HTTPException(
                status_code=503,
                detail={"message": "Checking server connection...", "checking": True},
            )
    if not ctx.store.state.is_server_online:
        raise HTTPException(status_code=503, detail=_offline_detail(ctx))


def _service(ctx: AppContext, resource: str) -> ResourceService:
    service = ctx.resources.get(resource)
    if service is None:
        raise HTTPException(status_code=404, detail=f"Unknown resource: {resource}")
    return service


# =============================================================================
# CONNECTIVITY
# =============================================================================


@router.get("/status")
def connectivity_status(ctx: AppContext = Depends(get_context)):
    """Return backend connectivity state plus the banner view model."""
    return _status_payload(ctx)


@router.post("/status/retry")
async def retry_connection(ctx: AppContext = Depends(get_context)):
    """Probe the backend now (joins a probe already in flight)."""
    await ctx.supervisor.retry_connection()
    return _status_payload(ctx)


@router.get("/offline-state")
def offline_state():
    return build_offline_state()


# =============================================================================
# DASHBOARD
# =============================================================================


@router.get("/dashboard/farms")
async def farm_dashboard(ctx: AppContext = Depends(get_context)):
    """Farm totals for the dashboard widgets; reports offline instead of failing."""
    return await ctx.dashboard.farm_summary()


@router.get("/resources")
def list_resources():
    return [
        {
            "key": d.key,
            "label": d.label,
            "filter": bool(d.filter_path),
            "dropdown": d.has_dropdown,
            "hardDelete": d.hard_delete_path is not None,
        }
        for d in RESOURCES.values()
    ]


# =============================================================================
# RESOURCES
# =============================================================================


@router.get("/{resource}")
async def list_records(
    resource: str,
    request: Request,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=500),
    server_filter: bool = False,
    ctx: AppContext = Depends(get_context),
):
    """List records with optional filters (any other query parameter) and pagination."""
    service = _service(ctx, resource)
    filters = {k: v for k, v in request.query_params.items() if k not in _RESERVED_PARAMS}
    await _ensure_reachable(ctx)
    try:
        if server_filter and filters:
            records = await service.filter(filters)
        else:
            records = filter_records(await service.list_all(), filters)
    except UnsupportedOperation as e:
        raise HTTPException(status_code=405, detail=str(e))
    except ApiCallError as e:
        _raise_for(ctx, e)
    return paginate(records, page, page_size)


@router.get("/{resource}/dropdown")
async def dropdown(resource: str, ctx: AppContext = Depends(get_context)):
    service = _service(ctx, resource)
    await _ensure_reachable(ctx)
    try:
        return await service.dropdown()
    except UnsupportedOperation as e:
        raise HTTPException(status_code=405, detail=str(e))
    except ApiCallError as e:
        _raise_for(ctx, e)


@router.get("/{resource}/export.csv")
async def export_csv(resource: str, request: Request, ctx: AppContext = Depends(get_context)):
    """Export the (optionally filtered) list as CSV."""
    service = _service(ctx, resource)
    filters = {k: v for k, v in request.query_params.items() if k not in _RESERVED_PARAMS}
    await _ensure_reachable(ctx)
    try:
        records = filter_records(await service.list_all(), filters)
    except ApiCallError as e:
        _raise_for(ctx, e)
    content = records_to_csv(records, columns_for(resource, records))
    _logger.info("Exported %d %s records to CSV", len(records), resource)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(resource)}"',
            "X-Record-Count": str(len(records)),
        },
    )


@router.post("/{resource}/bulk-delete")
async def bulk_delete(resource: str, body: BulkDeleteIn, ctx: AppContext = Depends(get_context)):
    service = _service(ctx, resource)
    if not body.ids:
        raise HTTPException(status_code=422, detail="No records selected")
    await _ensure_reachable(ctx)
    try:
        return await service.bulk_delete(body.ids)
    except ApiCallError as e:
        _raise_for(ctx, e)


@router.get("/{resource}/{record_id}")
async def get_record(resource: str, record_id: str, ctx: AppContext = Depends(get_context)):
    service = _service(ctx, resource)
    await _ensure_reachable(ctx)
    try:
        return await service.get(record_id)
    except ApiCallError as e:
        _raise_for(ctx, e)


def _validated_payload(resource: str, body: Optional[RecordIn]) -> Dict[str, Any]:
    payload = body.model_dump() if body is not None else {}
    missing = missing_required(resource, payload)
    if missing:
        raise HTTPException(
            status_code=422,
            detail=f"Missing required fields: {', '.join(missing)}",
        )
    return payload


@router.post("/{resource}", status_code=201)
async def create_record(resource: str, body: RecordIn, ctx: AppContext = Depends(get_context)):
    service = _service(ctx, resource)
    payload = _validated_payload(resource, body)
    await _ensure_reachable(ctx)
    try:
        return await service.create(payload)
    except ApiCallError as e:
        _raise_for(ctx, e)


@router.put("/{resource}/{record_id}")
async def update_record(
    resource: str,
    record_id: str,
    body: RecordIn,
    ctx: AppContext = Depends(get_context),
):
    service = _service(ctx, resource)
    payload = _validated_payload(resource, body)
    await _ensure_reachable(ctx)
    try:
        return await service.update(record_id, payload)
    except ApiCallError as e:
        _raise_for(ctx, e)


@router.delete("/{resource}/{record_id}")
async def delete_record(
    resource: str,
    record_id: str,
    hard: bool = False,
    ctx: AppContext = Depends(get_context),
):
    """Delete a record; `hard=true` selects the permanent variant where the backend has one."""
    service = _service(ctx, resource)
    await _ensure_reachable(ctx)
    try:
        await service.delete(record_id, hard=hard)
    except UnsupportedOperation as e:
        raise HTTPException(status_code=405, detail=str(e))
    except ApiCallError as e:
        _raise_for(ctx, e)
    return {"ok": True, "deleted": record_id}
