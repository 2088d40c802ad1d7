"""Per-operation request bodies, parsed strictly from JSON."""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass
from typing import Any, Optional

from rise_hrm.lifecycle.statuses import MANUAL_AUDIT_TYPES, normalize_status
from rise_hrm.utils.datetime import parse_datetime_maybe, to_iso_utc
from rise_hrm.utils.errors import ApiError
from rise_hrm.utils.validators import (
    optional_int,
    optional_str,
    reject_unknown_keys,
    required_str,
    validate_email,
)


def _required_datetime(body: dict[str, Any], key: str, *, app_timezone: str) -> str:
    raw = required_str(body, key, max_len=64)
    dt = parse_datetime_maybe(raw, app_timezone=app_timezone)
    if dt is None:
        raise ApiError("BAD_REQUEST", f"{key} must be an ISO-8601 date-time", status=400)
    return to_iso_utc(dt)


def _audit_type(value: str) -> str:
    audit_type = normalize_status(value)
    if audit_type not in MANUAL_AUDIT_TYPES:
        raise ApiError(
            "BAD_REQUEST",
            f"Invalid auditType: {value!r}",
            status=400,
            details={"allowed": list(MANUAL_AUDIT_TYPES)},
        )
    return audit_type


def generate_meeting_url() -> str:
    letters = string.ascii_lowercase
    parts = ["".join(secrets.choice(letters) for _ in range(n)) for n in (3, 4, 3)]
    return "https://meet.google.com/" + "-".join(parts)


@dataclass(frozen=True)
class StatusUpdateRequest:
    status: str

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> "StatusUpdateRequest":
        reject_unknown_keys(body, {"status"})
        return cls(status=required_str(body, "status", max_len=64))


@dataclass(frozen=True)
class ScheduleInterviewRequest:
    candidateId: str
    scheduledAt: str
    durationMinutes: int
    interviewerName: str
    meetingUrl: str

    @classmethod
    def from_body(cls, body: dict[str, Any], *, app_timezone: str) -> "ScheduleInterviewRequest":
        reject_unknown_keys(body, {"candidateId", "scheduledAt", "durationMinutes", "interviewerName", "meetingUrl"})
        return cls(
            candidateId=required_str(body, "candidateId", max_len=64),
            scheduledAt=_required_datetime(body, "scheduledAt", app_timezone=app_timezone),
            durationMinutes=optional_int(body, "durationMinutes", default=15, minimum=5, maximum=480),
            interviewerName=required_str(body, "interviewerName", max_len=200),
            meetingUrl=optional_str(body, "meetingUrl", max_len=500) or generate_meeting_url(),
        )


@dataclass(frozen=True)
class CandidateIntakeRequest:
    firstName: str
    lastName: str
    email: str
    phoneNumber: str
    addressLine1: str
    addressLine2: str
    city: str
    state: str
    zipCode: str

    _FIELDS = (
        "firstName",
        "lastName",
        "email",
        "phoneNumber",
        "addressLine1",
        "addressLine2",
        "city",
        "state",
        "zipCode",
    )

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> "CandidateIntakeRequest":
        reject_unknown_keys(body, cls._FIELDS)
        email_raw = optional_str(body, "email", max_len=320)
        phone = optional_str(body, "phoneNumber", max_len=32)
        if not email_raw and not phone:
            raise ApiError("BAD_REQUEST", "email or phoneNumber is required", status=400)
        return cls(
            firstName=required_str(body, "firstName", max_len=100),
            lastName=required_str(body, "lastName", max_len=100),
            email=validate_email(email_raw) if email_raw else "",
            phoneNumber=phone,
            addressLine1=optional_str(body, "addressLine1", max_len=200),
            addressLine2=optional_str(body, "addressLine2", max_len=200),
            city=optional_str(body, "city", max_len=100),
            state=optional_str(body, "state", max_len=50).upper(),
            zipCode=optional_str(body, "zipCode", max_len=16),
        )


@dataclass(frozen=True)
class AuditEntryCreateRequest:
    auditType: str
    dateTime: str
    notes: str
    createdBy: str

    @classmethod
    def from_body(cls, body: dict[str, Any], *, app_timezone: str) -> "AuditEntryCreateRequest":
        reject_unknown_keys(body, {"auditType", "dateTime", "notes", "createdBy"})
        return cls(
            auditType=_audit_type(required_str(body, "auditType", max_len=64)),
            dateTime=_required_datetime(body, "dateTime", app_timezone=app_timezone),
            notes=optional_str(body, "notes", max_len=5000),
            createdBy=optional_str(body, "createdBy", max_len=200),
        )


@dataclass(frozen=True)
class AuditEntryPatchRequest:
    auditType: Optional[str] = None
    dateTime: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_body(cls, body: dict[str, Any], *, app_timezone: str) -> "AuditEntryPatchRequest":
        reject_unknown_keys(body, {"auditType", "dateTime", "notes"})
        if not body:
            raise ApiError("BAD_REQUEST", "Nothing to update", status=400)
        return cls(
            auditType=_audit_type(required_str(body, "auditType", max_len=64)) if "auditType" in body else None,
            dateTime=_required_datetime(body, "dateTime", app_timezone=app_timezone) if "dateTime" in body else None,
            notes=optional_str(body, "notes", max_len=5000) if "notes" in body else None,
        )


@dataclass(frozen=True)
class SendEmailRequest:
    templateType: str

    # Interview invites, offers and rejections go out with their own operations.
    ALLOWED = ("REACH_OUT",)

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> "SendEmailRequest":
        reject_unknown_keys(body, {"templateType"})
        template_type = normalize_status(required_str(body, "templateType", max_len=32))
        if template_type not in cls.ALLOWED:
            raise ApiError("BAD_REQUEST", "Invalid template type", status=400, details={"allowed": list(cls.ALLOWED)})
        return cls(templateType=template_type)
