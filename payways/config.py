"""
Environment-driven configuration.

Every value has a default so the service starts with nothing set; a missing
gateway key only switches risk assessment to its low-risk fallback.
"""

from __future__ import annotations

import os


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "") or os.environ.get("API_KEY", "")
GEMINI_MODEL = os.environ.get("PAYWAYS_GEMINI_MODEL", "gemini-2.5-pro")
GEMINI_BASE_URL = os.environ.get(
    "PAYWAYS_GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
RISK_TIMEOUT_S = _env_float("PAYWAYS_RISK_TIMEOUT_S", 30.0)

DB_PATH = os.environ.get("PAYWAYS_DB_PATH", "payways.db")

ADMIN_EMAIL = os.environ.get("PAYWAYS_ADMIN_EMAIL", "admin@payways.com")
RESULT_DISPLAY_S = _env_float("PAYWAYS_RESULT_DISPLAY_S", 5.0)

ALLOWED_ORIGINS = ["http://localhost:8080", "http://localhost:8000"]
_extra = os.environ.get("PAYWAYS_ALLOWED_ORIGINS", "").strip()
if _extra:
    ALLOWED_ORIGINS.extend(o.strip() for o in _extra.split(",") if o.strip())

LOG_LEVEL = os.environ.get("PAYWAYS_LOG_LEVEL", "INFO").upper()
LOG_JSON = os.environ.get("PAYWAYS_LOG_JSON", "1") != "0"

SESSION_COOKIE = "payways_session"
