from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from rise_hrm.middlewares.request_id import current_request_id
from rise_hrm.utils.errors import HTTP_STATUS_BY_CODE, ApiError

log = logging.getLogger("rise_hrm.errors")

# Werkzeug statuses mapped onto the API's error codes.
_CODE_BY_HTTP_STATUS = {status: code for code, status in HTTP_STATUS_BY_CODE.items() if code != "INVALID_STATE"}
_CODE_BY_HTTP_STATUS.update({405: "METHOD_NOT_ALLOWED", 413: "BAD_REQUEST", 415: "BAD_REQUEST"})


def error_body(code: str, message: str, details: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message, "code": code, "details": details}
    rid = current_request_id()
    if rid:
        body["request_id"] = rid
    return body


def init_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def _api_error(err: ApiError):
        status = int(err.status or 500)
        if status >= 500:
            log.error("api error code=%s message=%s", err.code, err.message)
        elif err.code == "INVALID_STATE":
            log.info("rejected lifecycle request: %s details=%s", err.message, err.details)
        return jsonify(error_body(err.code, err.message, err.details)), status

    @app.errorhandler(HTTPException)
    def _http_error(err: HTTPException):
        status = int(err.code or 500)
        code = _CODE_BY_HTTP_STATUS.get(status, f"HTTP_{status}")
        return jsonify(error_body(code, str(err.description or err.name or "HTTP error"))), status

    @app.errorhandler(Exception)
    def _unhandled(err: Exception):
        log.exception("unhandled %s", err.__class__.__name__)
        return jsonify(error_body("INTERNAL", "Unexpected error")), 500
