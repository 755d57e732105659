"""
core/logging.py

JSON logging setup with request ID propagation.

Non-developer summary:
----------------------
Logs are one JSON object per line so they are easy to filter. Each line
carries the requestId of the request that produced it, when there is one.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Context variable set by RequestIdMiddleware
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class JsonFormatter(logging.Formatter):
    """
    Minimal JSON log formatter that adds service/stage and pulls requestId
    from the context variable set by the middleware.
    """

    def __init__(self, service: str, stage: str):
        super().__init__()
        self.service = service
        self.stage = stage

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "service": self.service,
            "stage": self.stage,
        }

        rid = request_id_var.get()
        if rid:
            payload["requestId"] = rid

        for key in ("hstsPolicy", "path"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)

        if record.exc_info:
            payload["exc"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def _setup_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(level_str: str = "INFO", *, service: str = "secsurf", stage: str = "dev") -> None:
    """
    Point the root and uvicorn loggers at a single JSON handler.

    Safe to call more than once; earlier handlers are replaced.
    """
    level = getattr(logging, (level_str or "INFO").upper(), logging.INFO)

    formatter = JsonFormatter(service=service, stage=stage)
    handler = _setup_handler(level, formatter)

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(level)
    root.addHandler(handler)

    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        lg = logging.getLogger(name)
        for h in list(lg.handlers):
            lg.removeHandler(h)
        lg.setLevel(level)
        lg.addHandler(handler)
        lg.propagate = False
