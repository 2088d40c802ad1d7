from __future__ import annotations

import logging
import secrets
from typing import Optional

from sqlalchemy import select

from rise_hrm.db import SessionLocal
from rise_hrm.lifecycle.statuses import ACCOUNT_ACTIVE, ACCOUNT_INACTIVE, ROLE_CANDIDATE, ROLE_RBT
from rise_hrm.models import User
from rise_hrm.utils.auth import hash_password
from rise_hrm.utils.datetime import iso_utc_now
from rise_hrm.utils.ids import new_id

log = logging.getLogger(__name__)


def find_user_by_email(db, email: str) -> Optional[User]:
    email = str(email or "").strip().lower()
    if not email:
        return None
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def create_candidate_account(db, *, email: str, name: str) -> User:
    """
    Stage a CANDIDATE login for a new applicant in the caller's transaction.

    The password is random and unusable until an admin resets it.
    """
    now = iso_utc_now()
    user = User(
        userId=new_id("USR"),
        email=str(email or "").strip().lower(),
        name=str(name or ""),
        passwordHash=hash_password(secrets.token_urlsafe(24)),
        role=ROLE_CANDIDATE,
        status=ACCOUNT_ACTIVE,
        lastLoginAt="",
        createdAt=now,
        updatedAt=now,
    )
    db.add(user)
    return user


def _update_linked_account(user_id: str, *, role: str, status: str, only_if_role_differs: bool) -> bool:
    if not user_id:
        return False
    with SessionLocal() as db:
        user = db.execute(select(User).where(User.userId == user_id)).scalar_one_or_none()
        if user is None:
            return False
        if only_if_role_differs and str(user.role or "").upper() == role:
            return False
        user.role = role
        user.status = status
        user.updatedAt = iso_utc_now()
        db.commit()
    return True


def downgrade_after_rejection(user_id: str) -> bool:
    """Back to an inactive CANDIDATE login, unless the account already is a CANDIDATE."""
    try:
        changed = _update_linked_account(user_id, role=ROLE_CANDIDATE, status=ACCOUNT_INACTIVE, only_if_role_differs=True)
    except Exception:
        log.exception("account downgrade failed after rejection: user=%s", user_id)
        return False
    if changed:
        log.info("account downgraded to CANDIDATE: user=%s", user_id)
    return changed


def promote_after_hire(user_id: str) -> bool:
    try:
        changed = _update_linked_account(user_id, role=ROLE_RBT, status=ACCOUNT_ACTIVE, only_if_role_differs=False)
    except Exception:
        log.exception("account promotion failed after hire: user=%s", user_id)
        return False
    if changed:
        log.info("account promoted to RBT: user=%s", user_id)
    return changed
