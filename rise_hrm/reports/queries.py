from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select

from rise_hrm.lifecycle.statuses import AUDIT_STATUS_CHANGE, CANDIDATE_STATUSES
from rise_hrm.models import AuditLogEntry, Candidate, Interview
from rise_hrm.utils.datetime import to_iso_utc


def _grouped(db, column, created_col, start_s: str, end_s: str) -> dict[str, int]:
    rows = db.execute(
        select(column, func.count())
        .where(created_col >= start_s)
        .where(created_col < end_s)
        .group_by(column)
    ).all()
    return {str(k or "UNKNOWN"): int(n) for k, n in rows}


def summary_report(db, start_dt: datetime, end_dt: datetime) -> dict[str, Any]:
    # Timestamps are ISO-8601 UTC text, so string bounds compare chronologically.
    start_s, end_s = to_iso_utc(start_dt), to_iso_utc(end_dt)

    cand_counts = _grouped(db, Candidate.status, Candidate.createdAt, start_s, end_s)
    cand_by_status = [{"status": s, "count": cand_counts.pop(s, 0)} for s in CANDIDATE_STATUSES]
    # Anything left over is a legacy value outside the pipeline.
    cand_by_status += [{"status": s, "count": n} for s, n in sorted(cand_counts.items())]

    int_counts = _grouped(db, Interview.status, Interview.scheduledAt, start_s, end_s)
    int_by_status = [{"status": s, "count": n} for s, n in sorted(int_counts.items())]

    status_changes = db.execute(
        select(func.count())
        .select_from(AuditLogEntry)
        .where(AuditLogEntry.auditType == AUDIT_STATUS_CHANGE)
        .where(AuditLogEntry.dateTime >= start_s)
        .where(AuditLogEntry.dateTime < end_s)
    ).scalar_one()

    return {
        "candidates": {
            "total": sum(int(x["count"]) for x in cand_by_status),
            "byStatus": cand_by_status,
        },
        "interviews": {
            "total": sum(int(x["count"]) for x in int_by_status),
            "byStatus": int_by_status,
        },
        "statusChanges": int(status_changes or 0),
    }


def audit_log_rows(db, start_dt: datetime, end_dt: datetime) -> list[dict[str, Any]]:
    start_s, end_s = to_iso_utc(start_dt), to_iso_utc(end_dt)
    rows = db.execute(
        select(AuditLogEntry, Candidate.firstName, Candidate.lastName)
        .outerjoin(Candidate, Candidate.candidateId == AuditLogEntry.candidateId)
        .where(AuditLogEntry.dateTime >= start_s)
        .where(AuditLogEntry.dateTime < end_s)
        .order_by(AuditLogEntry.dateTime.asc())
    ).all()

    out: list[dict[str, Any]] = []
    for entry, first_name, last_name in rows:
        out.append(
            {
                "dateTime": entry.dateTime,
                "candidateId": entry.candidateId,
                "candidateName": f"{first_name or ''} {last_name or ''}".strip(),
                "auditType": entry.auditType,
                "notes": entry.notes or "",
                "createdBy": entry.createdBy or "",
            }
        )
    return out
