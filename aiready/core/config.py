# aiready/core/config.py
from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv, find_dotenv

# root .env first, then aiready/.env without overriding
load_dotenv(find_dotenv(usecwd=True))
load_dotenv(Path(__file__).resolve().parent.parent / ".env", override=False)


def env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.getenv(name)
    if val is None or val.strip() == "":
        return default
    return val.strip()


def env_int(name: str, default: int) -> int:
    raw = env_str(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = env_str(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def env_flag(name: str, default: bool = False) -> bool:
    raw = env_str(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def env_list(name: str) -> List[str]:
    """Comma separated values, blanks dropped."""
    raw = env_str(name) or ""
    return [part.strip() for part in raw.split(",") if part.strip()]


# ---------------------------
# Static settings (read once at import)
# ---------------------------
DATABASE_URL = env_str("DATABASE_URL", "sqlite:///./aiready.db")

SECRET_KEY = env_str("SECRET_KEY", "change-me-in-production")
ALGORITHM = env_str("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 60)

LOG_LEVEL = (env_str("LOG_LEVEL", "INFO") or "INFO").upper()

ENABLE_CREATE_ALL = env_flag("ENABLE_CREATE_ALL", True)
ENABLE_SCHEDULER = env_flag("ENABLE_SCHEDULER", True)

APP_TIMEZONE = env_str("APP_TIMEZONE", "Europe/Zagreb")
APP_SCHEDULER_HOUR = env_int("APP_SCHEDULER_HOUR", 7)
APP_SCHEDULER_MINUTE = env_int("APP_SCHEDULER_MINUTE", 0)


# ---------------------------
# Provider credentials (read per call so rotation/monkeypatching works)
# ---------------------------
def provider_api_key(provider: str) -> Optional[str]:
    return env_str(f"{provider.upper()}_API_KEY")


def ai_request_timeout() -> float:
    return env_float("AI_REQUEST_TIMEOUT", 60.0)


def google_search_keys() -> List[str]:
    return env_list("GOOGLE_SEARCH_API_KEY")


def google_search_engine_id() -> Optional[str]:
    return env_str("GOOGLE_SEARCH_ENGINE_ID")
