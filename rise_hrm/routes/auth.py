from __future__ import annotations

import os

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from rise_hrm.db import unit_of_work
from rise_hrm.models import User
from rise_hrm.utils.auth import ROLES, create_access_token, get_current_user, hash_password, require_roles, verify_password
from rise_hrm.utils.datetime import iso_utc_now
from rise_hrm.utils.errors import ApiError
from rise_hrm.utils.ids import new_id
from rise_hrm.utils.validators import optional_str, require_json, validate_email, validate_password


auth_bp = Blueprint("auth", __name__)


def _role(value, *, default: str) -> str:
    role = str(value or "").strip().upper() or default
    if role not in ROLES:
        raise ApiError("BAD_REQUEST", f"role must be one of {', '.join(ROLES)}", status=400)
    return role


def _new_user(*, email: str, password: str, name: str, role: str) -> User:
    now = iso_utc_now()
    return User(
        userId=new_id("USR"),
        email=email,
        name=name,
        passwordHash=hash_password(password),
        role=role,
        status="ACTIVE",
        lastLoginAt="",
        createdAt=now,
        updatedAt=now,
    )


@auth_bp.post("/bootstrap")
def bootstrap():
    bootstrap_token = str(os.getenv("BOOTSTRAP_TOKEN", "") or "").strip()
    if not bootstrap_token:
        raise ApiError("FORBIDDEN", "Bootstrap is disabled", status=403)

    provided = str(request.headers.get("X-Bootstrap-Token") or "").strip()
    if not provided or provided != bootstrap_token:
        raise ApiError("FORBIDDEN", "Invalid bootstrap token", status=403)

    body = require_json()
    email = validate_email(body.get("email"))
    password = validate_password(body.get("password"), allow_short=False)
    name = optional_str(body, "name", max_len=200)

    with unit_of_work() as db:
        if db.execute(select(func.count()).select_from(User)).scalar_one() > 0:
            raise ApiError("CONFLICT", "Bootstrap already completed", status=409)
        db.add(_new_user(email=email, password=password, name=name, role="ADMIN"))

    return jsonify({"success": True, "data": {"email": email, "role": "ADMIN"}}), 201


@auth_bp.post("/login")
def login():
    body = require_json()
    email = validate_email(body.get("email"))
    password = validate_password(body.get("password"), allow_short=True)

    with unit_of_work() as db:
        user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if not user:
            raise ApiError("AUTH_INVALID", "Invalid credentials", status=401)

        if str(user.status or "ACTIVE").upper() != "ACTIVE":
            raise ApiError("FORBIDDEN", "User is disabled", status=403)

        if not verify_password(password, str(user.passwordHash or "")):
            raise ApiError("AUTH_INVALID", "Invalid credentials", status=401)

        user.lastLoginAt = iso_utc_now()
        token = create_access_token(current_app, user)
        user_data = {"id": user.userId, "email": user.email, "name": user.name, "role": user.role}

    cfg = current_app.config["CFG"]
    resp = jsonify(
        {
            "success": True,
            "data": {"access_token": token, "token_type": "bearer", "user": user_data},
        }
    )
    resp.set_cookie(
        cfg.SESSION_COOKIE_NAME,
        token,
        max_age=cfg.JWT_EXP_MINUTES * 60,
        httponly=True,
        secure=cfg.SESSION_COOKIE_SECURE,
        samesite="Lax",
        path="/",
    )
    return resp


@auth_bp.post("/logout")
def logout():
    cfg = current_app.config["CFG"]
    resp = jsonify({"success": True})
    resp.delete_cookie(cfg.SESSION_COOKIE_NAME, path="/")
    return resp


@auth_bp.get("/me")
def me():
    user = get_current_user()
    return jsonify({"success": True, "data": {"id": user.userId, "email": user.email, "name": user.name, "role": user.role}})


@auth_bp.post("/users")
@require_roles(["ADMIN"])
def create_user():
    body = require_json()
    email = validate_email(body.get("email"))
    password = validate_password(body.get("password"), allow_short=False)
    name = optional_str(body, "name", max_len=200)
    role = _role(body.get("role"), default="ADMIN")

    try:
        with unit_of_work() as db:
            if db.execute(select(User.userId).where(User.email == email)).first():
                raise ApiError("CONFLICT", "Email already exists", status=409)
            user = _new_user(email=email, password=password, name=name, role=role)
            db.add(user)
    except IntegrityError as e:
        raise ApiError("CONFLICT", "Email already exists", status=409) from e

    return jsonify({"success": True, "data": {"id": user.userId, "email": email, "role": role}}), 201
