from __future__ import annotations

import json
import logging
import time
from typing import Any

from flask import Flask, g, request

from rise_hrm.middlewares.request_id import current_request_id
from rise_hrm.utils.request import client_ip

_QUIET_PATHS = {"/health", "/version"}


def _level_for(status: int, path: str) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    # Load balancer probes would drown everything else at INFO.
    if path in _QUIET_PATHS:
        return logging.DEBUG
    return logging.INFO


def init_request_logging(app: Flask) -> None:
    logger = logging.getLogger("rise_hrm.request")
    cfg = app.config["CFG"]

    @app.after_request
    def _log(resp):
        start = getattr(g, "start_ts", None)
        latency_ms = int((time.monotonic() - start) * 1000) if isinstance(start, (int, float)) else None
        actor = getattr(g, "current_user", None)

        data: dict[str, Any] = {
            "type": "request",
            "request_id": current_request_id(),
            "method": request.method,
            "path": request.path,
            "endpoint": request.endpoint or "",
            "status": resp.status_code,
            "latency_ms": latency_ms,
            "ip": client_ip(trust_proxy=cfg.TRUST_PROXY_HEADERS),
            "user": getattr(g, "user_id", "") or "",
            "role": getattr(actor, "role", "") or "",
        }

        logger.log(_level_for(resp.status_code, request.path), json.dumps(data, separators=(",", ":")))
        return resp
