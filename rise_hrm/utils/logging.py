from __future__ import annotations

import logging
import sys

from flask import g, has_request_context


class RequestIdFilter(logging.Filter):
    """Stamps every record with the current request id ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        rid = getattr(g, "request_id", "") if has_request_context() else ""
        record.request_id = rid or "-"
        return True


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"))

    root.handlers.clear()
    root.addHandler(handler)

    # SQLAlchemy echoes every statement at INFO; keep it out of request logs.
    logging.getLogger("sqlalchemy.engine").setLevel(max(logging.WARNING, root.level))
