from __future__ import annotations

import functools
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, TypeVar

import bcrypt
import jwt
from flask import current_app, g, request
from sqlalchemy import select

from rise_hrm.db import SessionLocal
from rise_hrm.models import User
from rise_hrm.utils.errors import ApiError


_T = TypeVar("_T", bound=Callable[..., Any])

ROLES = ("ADMIN", "RBT", "CANDIDATE")


@dataclass(frozen=True)
class AuthContext:
    userId: str
    email: str
    role: str
    name: str = ""

    @property
    def label(self) -> str:
        """Who to credit in audit entries."""
        return self.email or self.name or "Admin"


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except Exception:
        return False


def create_access_token(app, user: User) -> str:
    cfg = app.config["CFG"]
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.userId),
        "email": str(user.email or ""),
        "role": str(user.role or ""),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=cfg.JWT_EXP_MINUTES)).timestamp()),
    }
    return jwt.encode(payload, cfg.JWT_SECRET, algorithm="HS256")


def _decode_token(token: str) -> dict[str, Any]:
    cfg = current_app.config["CFG"]
    try:
        return jwt.decode(token, cfg.JWT_SECRET, algorithms=["HS256"])
    except jwt.ExpiredSignatureError as e:
        raise ApiError("AUTH_INVALID", "Session expired", status=401) from e
    except jwt.InvalidTokenError as e:
        raise ApiError("AUTH_INVALID", "Invalid session", status=401) from e


def _session_token() -> str:
    authz = str(request.headers.get("Authorization") or "").strip()
    if authz.lower().startswith("bearer "):
        return authz.split(" ", 1)[1].strip()
    cookie_name = current_app.config["CFG"].SESSION_COOKIE_NAME
    return str(request.cookies.get(cookie_name) or "").strip()


def get_current_user() -> AuthContext:
    """Resolve the caller from the request on every call; nothing is cached across requests."""
    token = _session_token()
    if not token:
        raise ApiError("AUTH_INVALID", "Unauthorized", status=401)

    payload = _decode_token(token)
    sub = str(payload.get("sub") or "").strip()
    if not sub:
        raise ApiError("AUTH_INVALID", "Invalid session payload", status=401)

    with SessionLocal() as db:
        user = db.execute(select(User).where(User.userId == sub)).scalar_one_or_none()

    if not user:
        raise ApiError("AUTH_INVALID", "User not found", status=401)
    if str(user.status or "ACTIVE").upper() != "ACTIVE":
        raise ApiError("FORBIDDEN", "User is disabled", status=403)

    ctx = AuthContext(
        userId=str(user.userId),
        email=str(user.email or "").strip().lower(),
        role=str(user.role or "").upper().strip(),
        name=str(user.name or ""),
    )
    g.user_id = ctx.userId
    return ctx


def require_roles(roles: list[str]) -> Callable[[_T], _T]:
    allowed = {str(r or "").upper().strip() for r in (roles or []) if str(r or "").strip()}

    def _decorator(fn: _T) -> _T:
        @functools.wraps(fn)
        def _wrapped(*args, **kwargs):
            user = get_current_user()
            if allowed and user.role not in allowed:
                raise ApiError("FORBIDDEN", "Forbidden", status=403, details={"required": sorted(allowed)})
            g.current_user = user
            return fn(*args, **kwargs)

        return _wrapped  # type: ignore[return-value]

    return _decorator


def current_actor() -> AuthContext:
    user = getattr(g, "current_user", None)
    if user is None:
        user = get_current_user()
        g.current_user = user
    return user
