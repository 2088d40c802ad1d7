from __future__ import annotations

from flask import Flask, g, request

from rise_hrm.utils.rate_limiter import InMemoryRateLimiter
from rise_hrm.utils.request import client_ip

limiter = InMemoryRateLimiter()


def _bucket_and_limit(cfg, path: str) -> tuple[str, str]:
    if path.startswith("/api/v1/auth/login") or path.startswith("/api/v1/auth/bootstrap"):
        return "LOGIN", cfg.RATE_LIMIT_LOGIN
    return f"PATH:{request.method}:{request.url_rule.rule if request.url_rule else path}", cfg.RATE_LIMIT_DEFAULT


def init_rate_limiting(app: Flask) -> None:
    cfg = app.config["CFG"]

    @app.before_request
    def _rate_limit():
        path = request.path or ""
        if not path.startswith("/api/v1/") or request.method == "OPTIONS":
            return None

        ip = client_ip(trust_proxy=cfg.TRUST_PROXY_HEADERS)
        bucket, limit = _bucket_and_limit(cfg, path)
        if bucket != "LOGIN":
            limiter.check(f"{ip}:GLOBAL", cfg.RATE_LIMIT_GLOBAL)
        g.rate_limit = limiter.check(f"{ip}:{bucket}", limit)
        return None

    @app.after_request
    def _rate_limit_headers(resp):
        if resp.status_code == 429:
            resp.headers.setdefault("Retry-After", str(limiter.window_seconds))
        state = getattr(g, "rate_limit", None)
        if state:
            allowed, remaining = state
            resp.headers["X-RateLimit-Limit"] = str(allowed)
            resp.headers["X-RateLimit-Remaining"] = str(remaining)
        return resp
