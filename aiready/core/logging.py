# aiready/core/logging.py
from __future__ import annotations

import logging
import logging.config
from typing import Optional

from aiready.core.config import LOG_LEVEL

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """
    Console logging for the app and uvicorn.
    Safe to call more than once; only the first call installs handlers.
    """
    global _configured
    if _configured:
        return

    lvl = (level or LOG_LEVEL).upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)-7s %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "aiready": {"level": lvl},
                # third-party chatter
                "httpx": {"level": "WARNING"},
                "apscheduler": {"level": "WARNING"},
            },
            "root": {"level": lvl, "handlers": ["console"]},
        }
    )
    _configured = True
