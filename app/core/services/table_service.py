"""Client-side table helpers: filtering, pagination, CSV export, analytics."""

from __future__ import annotations

import csv
import datetime as dt
import io
import math
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

Column = Tuple[str, str, Optional[Callable[[Any], str]]]


def _fmt_active(value: Any) -> str:
    return "Active" if value else "Inactive"


def _fmt_date(value: Any) -> str:
    if not value:
        return ""
    if isinstance(value, (dt.date, dt.datetime)):
        return value.strftime("%Y-%m-%d")
    text = str(value)
    try:
        return dt.datetime.fromisoformat(text.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except ValueError:
        return text


# (header, record key, formatter)
EXPORT_COLUMNS: Dict[str, List[Column]] = {
    "farms": [
        ("Farm Name", "farmName", None),
        ("Location", "location", None),
        ("Total Acres", "totalAcres", None),
        ("Latitude", "latitude", None),
        ("Longitude", "longitude", None),
        ("Description", "description", None),
        ("Status", "isActive", _fmt_active),
        ("Created Date", "createdAt", _fmt_date),
    ],
    "fields": [
        ("Field Name", "fieldName", None),
        ("Farm ID", "farmId", None),
        ("Size (Acres)", "sizeAcres", None),
        ("Soil Type", "soilType", None),
        ("Irrigation Type", "irrigationType", None),
        ("Status", "isActive", _fmt_active),
        ("Created Date", "createdAt", _fmt_date),
    ],
    "crops": [
        ("Crop Name", "cropName", None),
        ("Harvest Season", "harvestSeason", None),
        ("Growth Duration (Days)", "growthDurationDays", None),
        ("Min Temp", "optimalTempMin", None),
        ("Max Temp", "optimalTempMax", None),
        ("Description", "description", None),
        ("Status", "isActive", _fmt_active),
        ("Created Date", "createdAt", _fmt_date),
    ],
}


def _matches(value: Any, expected: Any) -> bool:
    if isinstance(expected, bool) or isinstance(value, bool):
        if isinstance(expected, str):
            expected = expected.strip().lower() in {"1", "true", "yes", "active"}
        return bool(value) == bool(expected)
    if isinstance(value, (int, float)):
        try:
            return float(value) == float(expected)
        except (TypeError, ValueError):
            return False
    if value is None:
        return False
    return str(expected).strip().lower() in str(value).lower()


def filter_records(records: Iterable[Mapping[str, Any]], filters: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    """Keep records matching every non-empty filter (substring for text, exact otherwise)."""
    active = {k: v for k, v in (filters or {}).items() if v is not None and v != ""}
    if not active:
        return list(records)
    return [r for r in records if all(_matches(r.get(k), v) for k, v in active.items())]


def paginate(records: Sequence[Any], page: int = 1, page_size: int = 10) -> Dict[str, Any]:
    """1-based pagination; out-of-range pages are clamped."""
    size = max(1, int(page_size))
    total = len(records)
    pages = max(1, math.ceil(total / size))
    current = min(max(1, int(page)), pages)
    start = (current - 1) * size
    return {
        "items": list(records[start:start + size]),
        "total": total,
        "page": current,
        "pageSize": size,
        "pages": pages,
    }


def columns_for(resource: str, records: Sequence[Mapping[str, Any]]) -> List[Column]:
    if resource in EXPORT_COLUMNS:
        return EXPORT_COLUMNS[resource]
    keys: List[str] = []
    for record in records:
        for key in record.keys():
            if key not in keys and not isinstance(record.get(key), (dict, list)):
                keys.append(key)
    return [(key, key, None) for key in keys]


def records_to_csv(records: Sequence[Mapping[str, Any]], columns: Sequence[Column]) -> str:
    """Header row plus one row per record; every field quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([header for header, _key, _fmt in columns])
    for record in records:
        row = []
        for _header, key, fmt in columns:
            value = record.get(key)
            if fmt is not None:
                row.append(fmt(value))
            else:
                row.append("" if value is None or value is False else value)
        writer.writerow(row)
    return buffer.getvalue().rstrip("\n")


def export_filename(resource: str, today: Optional[dt.date] = None) -> str:
    day = today or dt.date.today()
    return f"{resource}-export-{day.isoformat()}.csv"


def percentage(part: float, total: float) -> int:
    if not total:
        return 0
    return int(round(100.0 * float(part) / float(total)))


def farm_analytics(farms: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    total = len(farms)
    active = sum(1 for farm in farms if farm.get("isActive"))
    total_acres = sum(float(farm.get("totalAcres") or 0) for farm in farms)
    return {
        "total": total,
        "active": active,
        "inactive": total - active,
        "totalAcres": round(total_acres, 2),
        "activePercentage": percentage(active, total),
    }
