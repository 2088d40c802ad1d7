from __future__ import annotations

from flask import Flask, request

# The API only ever returns JSON or file downloads; nothing should execute or frame it.
_API_CSP = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"


def init_security_headers(app: Flask) -> None:
    cfg = app.config["CFG"]

    @app.after_request
    def _headers(resp):
        headers = resp.headers
        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("X-Frame-Options", "DENY")
        headers.setdefault("Referrer-Policy", "no-referrer")
        headers.setdefault("Content-Security-Policy", _API_CSP)
        headers.setdefault("Cross-Origin-Resource-Policy", "same-site")

        if request.path.startswith("/api/"):
            # Candidate records and audit trails must not land in shared caches.
            headers["Cache-Control"] = "no-store"
            headers.setdefault("Pragma", "no-cache")

        forwarded_proto = str(request.headers.get("X-Forwarded-Proto") or "").lower()
        is_https = request.is_secure or (cfg.TRUST_PROXY_HEADERS and forwarded_proto == "https")
        if cfg.IS_PRODUCTION and is_https:
            headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")

        return resp
