from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()  # Load .env file if present


def _get(key: str, default: str = "") -> str:
    return os.getenv(key, default)


def _get_bool(key: str, default: bool = False) -> bool:
    raw = _get(key, "1" if default else "0").strip().lower()
    return raw in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    APP_NAME: str = _get("APP_NAME", "AgroSmart")
    APP_ENV: str = _get("APP_ENV", "dev")
    AGROSMART_PORT: int = int(_get("AGROSMART_PORT", "8002"))

    # AgroSmart backend
    AGROSMART_API_BASE_URL: str = _get("AGROSMART_API_BASE_URL", "http://localhost:5000/api")
    AGROSMART_REQUEST_TIMEOUT: float = float(_get("AGROSMART_REQUEST_TIMEOUT", "10"))
    AGROSMART_REQUEST_RETRIES: int = int(_get("AGROSMART_REQUEST_RETRIES", "3"))
    AGROSMART_RETRY_CAP_SECONDS: float = float(_get("AGROSMART_RETRY_CAP_SECONDS", "8"))

    # Connectivity supervisor
    AGROSMART_HEALTH_PATH: str = _get("AGROSMART_HEALTH_PATH", "/Health")
    AGROSMART_PROBE_INTERVAL: float = float(_get("AGROSMART_PROBE_INTERVAL", "10"))
    AGROSMART_PROBE_TIMEOUT: float = float(_get("AGROSMART_PROBE_TIMEOUT", "5"))
    AGROSMART_INITIAL_CHECK_WAIT: float = float(_get("AGROSMART_INITIAL_CHECK_WAIT", "6"))
    AGROSMART_POLLING_ENABLED: bool = _get_bool("AGROSMART_POLLING_ENABLED", True)


settings = Settings()
