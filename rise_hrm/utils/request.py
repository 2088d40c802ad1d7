from __future__ import annotations

from flask import request


def client_ip(*, trust_proxy: bool) -> str:
    if trust_proxy:
        forwarded = str(request.headers.get("X-Forwarded-For") or "").strip()
        if forwarded:
            return forwarded.split(",", 1)[0].strip()
    return str(request.remote_addr or "")
