"""Log setup for the API server and CLI.

Development logs are short; other environments add the time and the request
correlation ID.
"""

import logging
import sys
from typing import Any

from vipclub.api.middleware import RequestContextFilter
from vipclub.config import settings

DEV_FORMAT = "%(levelname)-8s %(name)s: %(message)s"
PROD_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"

QUIET_LOGGERS = ("aiosqlite", "asyncio", "sqlalchemy.engine", "httpx", "httpcore")


def _formatter(fmt: str, access: bool = False) -> dict[str, Any]:
    kind = "AccessFormatter" if access else "DefaultFormatter"
    return {"()": f"uvicorn.logging.{kind}", "fmt": fmt}


def get_uvicorn_log_config() -> dict[str, Any]:
    """dictConfig for uvicorn so its records match the application's format."""
    if settings.is_development:
        default_fmt = "%(levelprefix)s %(name)s: %(message)s"
        access_fmt = '%(levelprefix)s "%(request_line)s" %(status_code)s'
    else:
        default_fmt = "%(asctime)s %(levelprefix)s %(name)s [%(request_id)s] %(message)s"
        access_fmt = '%(asctime)s %(levelprefix)s %(client_addr)s "%(request_line)s" %(status_code)s'

    def handler(formatter: str) -> dict[str, Any]:
        return {
            "class": "logging.StreamHandler",
            "formatter": formatter,
            "filters": ["request_id"],
            "stream": "ext://sys.stdout",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_id": {"()": RequestContextFilter}},
        "formatters": {
            "default": _formatter(default_fmt),
            "access": _formatter(access_fmt, access=True),
        },
        "handlers": {"default": handler("default"), "access": handler("access")},
        "loggers": {
            "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
            "vipclub": {"handlers": ["default"], "level": settings.log_level, "propagate": False},
        },
        "root": {"handlers": ["default"], "level": "WARNING"},
    }


def setup_logging() -> None:
    """Configure the root logger for CLI commands and ``python -m vipclub.main``."""
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(logging.Formatter(DEV_FORMAT if settings.is_development else PROD_FORMAT))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
