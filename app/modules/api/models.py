from __future__ import annotations
from typing import Any, Dict, List, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator

# Mirrors the NotEmpty rules of the backend validators, so obviously
# incomplete forms are rejected before a round trip.
REQUIRED_FIELDS: Dict[str, List[str]] = {
    "farms": ["farmName", "location"],
    "fields": ["fieldName"],
    "crops": ["cropName"],
    "field-wise-crops": ["status"],
    "schedules": ["scheduleType", "title", "priority", "status"],
    "smart-insights": ["insightType", "title", "message"],
    "sensors": ["sensorType"],
    "users": ["fullName", "email"],
}


def missing_required(resource: str, payload: Dict[str, Any]) -> List[str]:
    missing = []
    for name in REQUIRED_FIELDS.get(resource, []):
        value = payload.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


class RecordIn(BaseModel):
    """Opaque domain record; the backend owns the schema."""
    model_config = ConfigDict(extra="allow")


class BulkDeleteIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ids: List[Union[int, str]] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def normalize_aliases(cls, data: Any) -> Any:
        """Accept the `selectedIds` key the table selection sends."""
        if isinstance(data, dict) and "ids" not in data and "selectedIds" in data:
            remapped = dict(data)
            remapped["ids"] = remapped.pop("selectedIds")
            return remapped
        return data
