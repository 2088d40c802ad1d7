from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import func, select, update

from rise_hrm.models import Candidate, Interview
from rise_hrm.utils.datetime import iso_utc_now
from rise_hrm.utils.errors import ApiError


def find_candidate(db, *, candidate_id: str, for_update: bool = False) -> Candidate:
    q = select(Candidate).where(Candidate.candidateId == str(candidate_id))
    if for_update:
        q = q.with_for_update()
    cand = db.execute(q).scalar_one_or_none()
    if not cand:
        raise ApiError("NOT_FOUND", "Candidate not found")
    return cand


def find_interview(db, *, interview_id: str, for_update: bool = False) -> Interview:
    q = select(Interview).where(Interview.interviewId == str(interview_id))
    if for_update:
        q = q.with_for_update()
    interview = db.execute(q).scalar_one_or_none()
    if not interview:
        raise ApiError("NOT_FOUND", "Interview not found")
    return interview


def lock_interview_with_candidate(db, *, interview_id: str) -> tuple[Interview, Optional[Candidate]]:
    """
    Lock an interview's candidate, then the interview itself.

    Candidate before interview is the lock order every lifecycle operation
    follows; `set_status` reaches interviews only through the candidate.
    """
    candidate_id = db.execute(
        select(Interview.candidateId).where(Interview.interviewId == str(interview_id))
    ).scalar_one_or_none()
    if candidate_id is None:
        raise ApiError("NOT_FOUND", "Interview not found")

    cand = db.execute(
        select(Candidate).where(Candidate.candidateId == candidate_id).with_for_update()
    ).scalar_one_or_none()
    interview = find_interview(db, interview_id=interview_id, for_update=True)
    if interview.candidateId != candidate_id:
        raise ApiError("INVALID_STATE", "Interview changed by another request; reload and try again")
    return interview, cand


def write_status(db, cand: Candidate, *, expected: str, new: str, updated_by: str) -> None:
    """
    Compare-and-set the candidate status.

    The UPDATE only matches while the row still holds `expected`, so the caller's
    audit text ("from <expected>") is always the value actually overwritten. A
    concurrent writer that got there first turns this into INVALID_STATE.
    """
    res = db.execute(
        update(Candidate)
        .where(Candidate.candidateId == cand.candidateId)
        .where(Candidate.status == expected)
        .values(status=new, updatedAt=iso_utc_now(), updatedBy=str(updated_by or ""))
        .execution_options(synchronize_session="evaluate")
    )
    if res.rowcount != 1:
        raise ApiError(
            "INVALID_STATE",
            "Candidate status changed by another request; reload and try again",
            details={"expected": expected, "requested": new},
        )


def serialize_candidate(cand: Candidate) -> dict[str, Any]:
    return {
        "id": cand.candidateId,
        "userId": cand.userId or None,
        "firstName": cand.firstName,
        "lastName": cand.lastName,
        "email": cand.email or None,
        "phoneNumber": cand.phoneNumber or None,
        "addressLine1": cand.addressLine1 or None,
        "addressLine2": cand.addressLine2 or None,
        "city": cand.city or None,
        "state": cand.state or None,
        "zipCode": cand.zipCode or None,
        "status": cand.status,
        "createdAt": cand.createdAt,
        "updatedAt": cand.updatedAt,
    }


def serialize_interview(interview: Interview) -> dict[str, Any]:
    return {
        "id": interview.interviewId,
        "candidateId": interview.candidateId,
        "scheduledAt": interview.scheduledAt,
        "durationMinutes": interview.durationMinutes,
        "interviewerName": interview.interviewerName,
        "meetingUrl": interview.meetingUrl or None,
        "status": interview.status,
        "reminderSentAt": interview.reminderSentAt or None,
    }


def list_candidates(db, *, status: str = "", search: str = "") -> list[Candidate]:
    q = select(Candidate)
    if status:
        q = q.where(Candidate.status == status)
    if search:
        like = f"%{search.lower()}%"
        q = q.where(
            func.lower(Candidate.firstName).like(like)
            | func.lower(Candidate.lastName).like(like)
            | func.lower(Candidate.email).like(like)
            | Candidate.phoneNumber.like(like)
        )
    return list(db.execute(q.order_by(Candidate.createdAt.desc())).scalars().all())


def list_interviews(db, *, candidate_id: str = "", status: str = "") -> list[Interview]:
    q = select(Interview)
    if candidate_id:
        q = q.where(Interview.candidateId == candidate_id)
    if status:
        q = q.where(Interview.status == status)
    return list(db.execute(q.order_by(Interview.scheduledAt.asc())).scalars().all())
