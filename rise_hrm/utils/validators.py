from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable
from zoneinfo import ZoneInfo

from flask import request

from rise_hrm.utils.errors import ApiError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_json() -> dict[str, Any]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ApiError("BAD_REQUEST", "JSON body must be an object", status=400)
    return body


def optional_json() -> dict[str, Any]:
    if not request.get_data(cache=True):
        return {}
    return require_json()


def reject_unknown_keys(body: dict[str, Any], allowed: Iterable[str]) -> None:
    unknown = sorted(set(body.keys()) - set(allowed))
    if unknown:
        raise ApiError("BAD_REQUEST", f"Unknown field(s): {', '.join(unknown)}", status=400)


def required_str(body: dict[str, Any], key: str, *, max_len: int = 500) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ApiError("BAD_REQUEST", f"{key} is required", status=400)
    value = value.strip()
    if len(value) > max_len:
        raise ApiError("BAD_REQUEST", f"{key} is too long", status=400)
    return value


def optional_str(body: dict[str, Any], key: str, *, max_len: int = 2000) -> str:
    value = body.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ApiError("BAD_REQUEST", f"{key} must be a string", status=400)
    value = value.strip()
    if len(value) > max_len:
        raise ApiError("BAD_REQUEST", f"{key} is too long", status=400)
    return value


def optional_int(body: dict[str, Any], key: str, *, default: int, minimum: int, maximum: int) -> int:
    value = body.get(key)
    if value is None:
        return default
    # bool is an int subclass; refuse it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ApiError("BAD_REQUEST", f"{key} must be an integer", status=400)
    if value < minimum or value > maximum:
        raise ApiError("BAD_REQUEST", f"{key} must be between {minimum} and {maximum}", status=400)
    return value


def validate_email(value: Any) -> str:
    email = str(value or "").strip().lower()
    if not email or not _EMAIL_RE.match(email):
        raise ApiError("BAD_REQUEST", "Invalid email", status=400)
    return email


def validate_password(value: Any, *, allow_short: bool) -> str:
    password = str(value or "")
    if not password:
        raise ApiError("BAD_REQUEST", "Password required", status=400)
    if not allow_short and len(password) < 8:
        raise ApiError("BAD_REQUEST", "Password must be at least 8 characters", status=400)
    return password


def _parse_yyyy_mm_dd(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except Exception as e:
        raise ApiError("BAD_REQUEST", "Date must be YYYY-MM-DD", status=400) from e


def _local_midnight_utc(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def parse_date_range(args, *, timezone_name: str = "UTC") -> tuple[datetime, datetime, str, str]:
    """
    Read `from`/`to` (inclusive days) as calendar days in `timezone_name`.
    Returns UTC bounds for a half-open `[start, end)` filter.
    """
    from_s = str(args.get("from") or "").strip()
    to_s = str(args.get("to") or "").strip()
    if not from_s or not to_s:
        raise ApiError("BAD_REQUEST", "from and to are required (YYYY-MM-DD)", status=400)

    tz = ZoneInfo(timezone_name)
    start_dt = _local_midnight_utc(_parse_yyyy_mm_dd(from_s), tz)
    end_dt = _local_midnight_utc(_parse_yyyy_mm_dd(to_s) + timedelta(days=1), tz)
    if end_dt <= start_dt:
        raise ApiError("BAD_REQUEST", "Invalid date range", status=400)
    return start_dt, end_dt, from_s, to_s
