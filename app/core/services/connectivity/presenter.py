"""View models for the server status banner and the offline placeholder."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from app.core.services.connectivity.state import ConnectivityState

BANNER_TITLE = "Server Connection Lost"
BANNER_MESSAGE = "Unable to connect to the backend server. Please check your connection."
OFFLINE_MESSAGE = (
    "Unable to connect to the server. Please check your internet connection and try again."
)
TROUBLESHOOTING_TIPS: List[str] = [
    "Check your internet connection",
    "Verify the server is running",
    "Try refreshing the page",
    "Contact support if the issue persists",
]


def format_elapsed(since: Optional[dt.datetime], now: dt.datetime) -> str:
    if since is None:
        return "never"
    seconds = max(0, int((now - since).total_seconds()))
    if seconds < 60:
        return f"{seconds} seconds ago"
    if seconds < 3600:
        return f"{seconds // 60} minutes ago"
    return f"{seconds // 3600} hours ago"


def build_banner(state: ConnectivityState, now: Optional[dt.datetime] = None) -> Dict[str, Any]:
    """Banner is hidden while online and during the initial check."""
    if state.is_initial_check or state.is_server_online:
        return {"visible": False}
    current = now or dt.datetime.now(dt.timezone.utc)
    return {
        "visible": True,
        "title": BANNER_TITLE,
        "message": BANNER_MESSAGE,
        "lastChecked": f"Last checked: {format_elapsed(state.last_checked, current)}",
        "retryCount": state.retry_count,
        "showRetryCount": state.retry_count > 0,
        "retryAction": "/api/status/retry",
    }


def build_offline_state(
    *,
    title: str = BANNER_TITLE,
    message: str = OFFLINE_MESSAGE,
    show_retry_button: bool = True,
) -> Dict[str, Any]:
    return {
        "title": title,
        "message": message,
        "showRetryButton": show_retry_button,
        "retryAction": "/api/status/retry" if show_retry_button else None,
        "troubleshootingTips": list(TROUBLESHOOTING_TIPS),
    }
