from __future__ import annotations

import logging

from sqlalchemy import func, select, update

from rise_hrm.lifecycle.audit import append_status_change
from rise_hrm.lifecycle.candidate_repo import write_status
from rise_hrm.lifecycle.statuses import (
    INTERVIEW_COMPLETED,
    INTERVIEW_COMPLETED_STATE,
    INTERVIEW_DELETE_REVERT_STATUS,
    INTERVIEW_SCHEDULED,
    INTERVIEW_SCHEDULED_STATE,
)
from rise_hrm.models import Candidate, Interview
from rise_hrm.utils.datetime import iso_utc_now
from rise_hrm.utils.errors import ApiError

log = logging.getLogger(__name__)


def count_scheduled(db, candidate_id: str) -> int:
    return int(
        db.execute(
            select(func.count())
            .select_from(Interview)
            .where(Interview.candidateId == candidate_id)
            .where(Interview.status == INTERVIEW_SCHEDULED_STATE)
        ).scalar_one()
    )


def close_scheduled_interviews(db, candidate_id: str) -> int:
    """Mark every SCHEDULED interview of the candidate COMPLETED. Returns how many changed."""
    res = db.execute(
        update(Interview)
        .where(Interview.candidateId == candidate_id)
        .where(Interview.status == INTERVIEW_SCHEDULED_STATE)
        .values(status=INTERVIEW_COMPLETED_STATE, updatedAt=iso_utc_now())
        .execution_options(synchronize_session="evaluate")
    )
    return int(res.rowcount or 0)


def revert_after_interview_delete(db, cand: Candidate, *, created_by: str) -> bool:
    """
    Run after an interview row is deleted and flushed.

    With no SCHEDULED interview left, a candidate still marked INTERVIEW_SCHEDULED
    goes back to REACH_OUT_EMAIL_SENT.
    """
    if count_scheduled(db, cand.candidateId) > 0:
        return False
    previous = str(cand.status or "")
    if previous != INTERVIEW_SCHEDULED:
        return False

    write_status(db, cand, expected=previous, new=INTERVIEW_DELETE_REVERT_STATUS, updated_by=created_by)
    append_status_change(
        db,
        candidate_id=cand.candidateId,
        previous=previous,
        new=INTERVIEW_DELETE_REVERT_STATUS,
        created_by=created_by,
        prefix="Interview deleted. ",
    )
    log.info("candidate=%s reverted to %s after last interview deleted", cand.candidateId, INTERVIEW_DELETE_REVERT_STATUS)
    return True


def complete_single_interview(db, interview: Interview, cand: Candidate, *, created_by: str) -> str:
    """Complete one SCHEDULED interview and move the candidate to INTERVIEW_COMPLETED. Returns the previous status."""
    if interview.status != INTERVIEW_SCHEDULED_STATE:
        raise ApiError(
            "INVALID_STATE",
            "Interview is not in SCHEDULED status",
            details={"status": interview.status},
        )

    # Only this interview closes; the candidate's other SCHEDULED interviews stay as they are.
    previous = str(cand.status or "")
    interview.status = INTERVIEW_COMPLETED_STATE
    interview.updatedAt = iso_utc_now()

    write_status(db, cand, expected=previous, new=INTERVIEW_COMPLETED, updated_by=created_by)
    append_status_change(
        db,
        candidate_id=cand.candidateId,
        previous=previous,
        new=INTERVIEW_COMPLETED,
        created_by=created_by,
        prefix="Interview marked completed. ",
    )
    return previous
