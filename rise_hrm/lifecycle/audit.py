from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select

from rise_hrm.lifecycle.requests import AuditEntryCreateRequest, AuditEntryPatchRequest
from rise_hrm.lifecycle.statuses import AUDIT_STATUS_CHANGE, MANUAL_AUDIT_TYPES
from rise_hrm.models import AuditLogEntry
from rise_hrm.utils.datetime import iso_utc_now
from rise_hrm.utils.errors import ApiError
from rise_hrm.utils.ids import new_id


def status_change_notes(previous: str, new: str, *, prefix: str = "") -> str:
    return f"{prefix}Status changed from {previous} to {new}"


def append_audit(
    db,
    *,
    candidate_id: str,
    audit_type: str,
    notes: str,
    created_by: str,
    at: Optional[str] = None,
) -> AuditLogEntry:
    """Stage one audit entry in the caller's transaction; it commits or rolls back with it."""
    now = iso_utc_now()
    entry = AuditLogEntry(
        auditId=new_id("AUD"),
        candidateId=str(candidate_id or ""),
        auditType=str(audit_type or "").upper(),
        dateTime=str(at or now),
        notes=str(notes or ""),
        createdBy=str(created_by or "Admin"),
        createdAt=now,
        updatedAt=now,
    )
    db.add(entry)
    return entry


def append_status_change(db, *, candidate_id: str, previous: str, new: str, created_by: str, prefix: str = "") -> AuditLogEntry:
    return append_audit(
        db,
        candidate_id=candidate_id,
        audit_type=AUDIT_STATUS_CHANGE,
        notes=status_change_notes(previous, new, prefix=prefix),
        created_by=created_by,
    )


def list_entries(db, candidate_id: str) -> list[AuditLogEntry]:
    return list(
        db.execute(
            select(AuditLogEntry)
            .where(AuditLogEntry.candidateId == candidate_id)
            .order_by(AuditLogEntry.dateTime.desc(), AuditLogEntry.createdAt.desc())
        )
        .scalars()
        .all()
    )


def find_entry(db, *, candidate_id: str, audit_id: str) -> AuditLogEntry:
    entry = db.execute(select(AuditLogEntry).where(AuditLogEntry.auditId == audit_id)).scalar_one_or_none()
    if not entry or entry.candidateId != candidate_id:
        raise ApiError("NOT_FOUND", "Audit log not found")
    return entry


def serialize_entry(entry: AuditLogEntry) -> dict[str, Any]:
    return {
        "id": entry.auditId,
        "candidateId": entry.candidateId,
        "auditType": entry.auditType,
        "dateTime": entry.dateTime,
        "notes": entry.notes or None,
        "createdBy": entry.createdBy or None,
        "createdAt": entry.createdAt,
        "updatedAt": entry.updatedAt,
    }


def _ensure_editable(entry: AuditLogEntry) -> None:
    # Status changes and deletion tombstones are written by the system and stay as written.
    if entry.auditType not in MANUAL_AUDIT_TYPES:
        raise ApiError(
            "INVALID_STATE",
            f"{entry.auditType} entries cannot be modified",
            details={"auditType": entry.auditType},
        )


def create_manual_entry(db, *, candidate_id: str, request: AuditEntryCreateRequest, actor_label: str) -> AuditLogEntry:
    return append_audit(
        db,
        candidate_id=candidate_id,
        audit_type=request.auditType,
        notes=request.notes,
        created_by=request.createdBy or actor_label,
        at=request.dateTime,
    )


def patch_entry(db, *, candidate_id: str, audit_id: str, request: AuditEntryPatchRequest) -> AuditLogEntry:
    entry = find_entry(db, candidate_id=candidate_id, audit_id=audit_id)
    _ensure_editable(entry)
    if request.auditType is not None:
        entry.auditType = request.auditType
    if request.dateTime is not None:
        entry.dateTime = request.dateTime
    if request.notes is not None:
        entry.notes = request.notes
    entry.updatedAt = iso_utc_now()
    return entry


def delete_entry(db, *, candidate_id: str, audit_id: str) -> None:
    entry = find_entry(db, candidate_id=candidate_id, audit_id=audit_id)
    _ensure_editable(entry)
    db.delete(entry)
