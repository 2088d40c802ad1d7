from __future__ import annotations

import logging

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

from rise_hrm.config import BaseConfig, get_config
from rise_hrm.db import init_db
from rise_hrm.lifecycle.transitions import get_policy
from rise_hrm.middlewares.error_handler import init_error_handlers
from rise_hrm.middlewares.logging import init_request_logging
from rise_hrm.middlewares.rate_limit import init_rate_limiting
from rise_hrm.middlewares.request_id import REQUEST_ID_HEADER, init_request_id
from rise_hrm.middlewares.security_headers import init_security_headers
from rise_hrm.routes.auth import auth_bp
from rise_hrm.routes.candidates import candidates_bp
from rise_hrm.routes.core import core_bp
from rise_hrm.routes.interviews import interviews_bp
from rise_hrm.routes.reports import reports_bp
from rise_hrm.utils.logging import setup_logging

API_PREFIX = "/api/v1"

BLUEPRINTS = (
    (core_bp, None),
    (auth_bp, f"{API_PREFIX}/auth"),
    (candidates_bp, API_PREFIX),
    (interviews_bp, API_PREFIX),
    (reports_bp, f"{API_PREFIX}/reports"),
)


def _init_cors(app: Flask, cfg: BaseConfig) -> None:
    # The admin UI sends the session cookie, so credentials must be allowed.
    CORS(
        app,
        resources={f"{API_PREFIX}/*": {"origins": cfg.CORS_ORIGINS}},
        supports_credentials=cfg.CORS_ALLOW_CREDENTIALS,
        allow_headers=["Content-Type", "Authorization", REQUEST_ID_HEADER, "X-Bootstrap-Token"],
        expose_headers=[REQUEST_ID_HEADER, "Content-Disposition", "Retry-After"],
        methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        max_age=3600,
    )


def create_app() -> Flask:
    load_dotenv()

    cfg = get_config()
    setup_logging(cfg.LOG_LEVEL)

    app = Flask(__name__)
    app.config["CFG"] = cfg
    app.extensions["transition_policy"] = get_policy(cfg.TRANSITION_POLICY).name

    _init_cors(app, cfg)

    init_request_id(app)
    init_security_headers(app)
    init_rate_limiting(app)
    init_request_logging(app)
    init_error_handlers(app)

    init_db(app)

    for bp, prefix in BLUEPRINTS:
        app.register_blueprint(bp, url_prefix=prefix)

    logging.getLogger(__name__).info(
        "rise_hrm started env=%s version=%s transition_policy=%s",
        cfg.ENV,
        cfg.APP_VERSION,
        app.extensions["transition_policy"],
    )
    return app
