"""Backend connectivity tracking for AgroSmart.

Classifies failed calls, probes the backend health endpoint, and keeps the
shared online/offline state every screen gates its data fetching on.
"""

from app.core.services.connectivity.error_classifier import (
    ApiErrorClassification,
    ErrorKind,
    classify_error,
)
from app.core.services.connectivity.poller import HealthPoller
from app.core.services.connectivity.state import ConnectivityState, ConnectivityStore
from app.core.services.connectivity.supervisor import ConnectivitySupervisor

__all__ = [
    "ApiErrorClassification",
    "ErrorKind",
    "classify_error",
    "HealthPoller",
    "ConnectivityState",
    "ConnectivityStore",
    "ConnectivitySupervisor",
]
