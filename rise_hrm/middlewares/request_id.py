from __future__ import annotations

import re
import secrets
import time

from flask import Flask, g, request

REQUEST_ID_HEADER = "X-Request-ID"

# Client-supplied ids end up in logs; only accept a conservative charset.
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{8,64}$")


def current_request_id() -> str:
    return str(getattr(g, "request_id", "") or "")


def init_request_id(app: Flask) -> None:
    @app.before_request
    def _assign_request_id():
        incoming = str(request.headers.get(REQUEST_ID_HEADER) or "").strip()
        g.request_id = incoming if _REQUEST_ID_RE.fullmatch(incoming) else secrets.token_hex(8)
        g.start_ts = time.monotonic()

    @app.after_request
    def _echo_request_id(resp):
        rid = current_request_id()
        if rid:
            resp.headers[REQUEST_ID_HEADER] = rid
        return resp
