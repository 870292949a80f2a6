"""Tests for the status banner and offline placeholder view models."""

import datetime as dt

from app.core.services.connectivity.presenter import (
    BANNER_TITLE,
    OFFLINE_MESSAGE,
    TROUBLESHOOTING_TIPS,
    build_banner,
    build_offline_state,
    format_elapsed,
)
from app.core.services.connectivity.state import ConnectivityState

NOW = dt.datetime(2026, 3, 1, 8, 0, 0, tzinfo=dt.timezone.utc)


def test_banner_hidden_during_initial_check():
    assert build_banner(ConnectivityState(), NOW) == {"visible": False}


def test_banner_hidden_when_online():
    state = ConnectivityState(is_server_online=True, is_initial_check=False, last_checked=NOW)
    assert build_banner(state, NOW)["visible"] is False


def test_banner_visible_when_offline():
    state = ConnectivityState(
        is_server_online=False,
        is_initial_check=False,
        last_checked=NOW - dt.timedelta(seconds=42),
        retry_count=3,
    )
    banner = build_banner(state, NOW)
    assert banner["visible"] is True
    assert banner["title"] == BANNER_TITLE
    assert banner["lastChecked"] == "Last checked: 42 seconds ago"
    assert banner["retryCount"] == 3
    assert banner["showRetryCount"] is True
    assert banner["retryAction"] == "/api/status/retry"


def test_format_elapsed_units():
    assert format_elapsed(None, NOW) == "never"
    assert format_elapsed(NOW, NOW) == "0 seconds ago"
    assert format_elapsed(NOW - dt.timedelta(minutes=5, seconds=10), NOW) == "5 minutes ago"
    assert format_elapsed(NOW - dt.timedelta(hours=2), NOW) == "2 hours ago"
    # A clock that runs backwards never produces negative durations.
    assert format_elapsed(NOW + dt.timedelta(seconds=5), NOW) == "0 seconds ago"


def test_offline_state_defaults():
    payload = build_offline_state()
    assert payload["message"] == OFFLINE_MESSAGE
    assert payload["showRetryButton"] is True
    assert payload["retryAction"] == "/api/status/retry"
    assert payload["troubleshootingTips"] == TROUBLESHOOTING_TIPS
    assert payload["troubleshootingTips"] is not TROUBLESHOOTING_TIPS


def test_offline_state_without_retry_button():
    payload = build_offline_state(title="Farms unavailable", show_retry_button=False)
    assert payload["title"] == "Farms unavailable"
    assert payload["retryAction"] is None
