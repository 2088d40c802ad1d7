from __future__ import annotations

import time

from flask import Blueprint, current_app, jsonify

from rise_hrm.db import ping_db
from rise_hrm.utils.datetime import iso_utc_now

core_bp = Blueprint("core", __name__)


@core_bp.get("/health")
def health():
    started = time.monotonic()
    db_ok = ping_db()
    db_ms = int((time.monotonic() - started) * 1000)

    body = {
        "status": "ok" if db_ok else "degraded",
        "db": "ok" if db_ok else "error",
        "dbLatencyMs": db_ms,
        "version": current_app.config["CFG"].APP_VERSION,
        "time": iso_utc_now(),
    }
    return jsonify(body), 200 if db_ok else 503


@core_bp.get("/version")
def version():
    cfg = current_app.config["CFG"]
    return jsonify(
        {
            "version": cfg.APP_VERSION,
            "env": cfg.ENV,
            "transitionPolicy": current_app.extensions.get("transition_policy", cfg.TRANSITION_POLICY),
            "timezone": cfg.APP_TIMEZONE,
            "time": iso_utc_now(),
        }
    )
