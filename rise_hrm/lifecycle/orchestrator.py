"""
Candidate lifecycle operations.

Every operation runs its core writes in one `unit_of_work()`: the status write,
its interview side effects and its audit entry commit together or not at all.
Account changes and e-mail run afterwards, each isolated, and only log on
failure.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import delete, select

from rise_hrm.db import unit_of_work
from rise_hrm.lifecycle.accounts import (
    create_candidate_account,
    downgrade_after_rejection,
    find_user_by_email,
    promote_after_hire,
)
from rise_hrm.lifecycle.audit import append_audit, append_status_change
from rise_hrm.lifecycle.candidate_repo import find_candidate, lock_interview_with_candidate, write_status
from rise_hrm.lifecycle.interviews import (
    close_scheduled_interviews,
    complete_single_interview,
    revert_after_interview_delete,
)
from rise_hrm.lifecycle.requests import CandidateIntakeRequest, ScheduleInterviewRequest, SendEmailRequest
from rise_hrm.lifecycle.statuses import (
    AUDIT_RBT_DELETED,
    EXIT_STATUSES,
    HIRED,
    INTERVIEW_SCHEDULED,
    INTERVIEW_SCHEDULED_STATE,
    NEW,
    REJECTED,
    ROLE_ADMIN,
    normalize_status,
)
from rise_hrm.lifecycle.transitions import PermissiveTransitionPolicy, get_policy
from rise_hrm.models import AuditLogEntry, Candidate, EmailLog, Interview, User
from rise_hrm.services import email as email_service
from rise_hrm.utils.auth import AuthContext
from rise_hrm.utils.datetime import iso_utc_now
from rise_hrm.utils.errors import ApiError
from rise_hrm.utils.ids import new_id

log = logging.getLogger(__name__)


def _send(cfg, *, candidate_id: str, to_email: str, template_type: str, subject: str, body: str) -> None:
    try:
        email_service.dispatch_email(
            cfg,
            candidate_id=candidate_id,
            template_type=template_type,
            to_email=to_email,
            subject=subject,
            body=body,
        )
    except Exception:
        log.exception("email step failed: candidate=%s template=%s", candidate_id, template_type)


def set_status(
    candidate_id: str,
    new_status: str,
    actor: AuthContext,
    *,
    cfg,
    policy: Optional[PermissiveTransitionPolicy] = None,
) -> dict[str, Any]:
    policy = policy or get_policy(cfg.TRANSITION_POLICY)
    with unit_of_work() as db:
        cand = find_candidate(db, candidate_id=candidate_id, for_update=True)
        previous = str(cand.status or "")
        decision = policy.validate(previous, new_status)

        write_status(db, cand, expected=previous, new=decision.requested, updated_by=actor.label)
        closed = close_scheduled_interviews(db, cand.candidateId) if decision.close_scheduled_interviews else 0
        append_status_change(
            db,
            candidate_id=cand.candidateId,
            previous=previous,
            new=decision.requested,
            created_by=actor.label,
        )

    log.info(
        "candidate=%s status %s -> %s by=%s closed_interviews=%s",
        candidate_id,
        previous,
        decision.requested,
        actor.label,
        closed,
    )
    return {"status": decision.requested}


def reject(candidate_id: str, actor: AuthContext, *, cfg) -> dict[str, Any]:
    with unit_of_work() as db:
        cand = find_candidate(db, candidate_id=candidate_id, for_update=True)
        previous = str(cand.status or "")
        write_status(db, cand, expected=previous, new=REJECTED, updated_by=actor.label)
        append_status_change(
            db,
            candidate_id=cand.candidateId,
            previous=previous,
            new=REJECTED,
            created_by=actor.label,
            prefix="Candidate rejected. ",
        )
        user_id, to_email, first_name = cand.userId, cand.email, cand.firstName

    log.info("candidate=%s rejected (was %s) by=%s", candidate_id, previous, actor.label)

    downgrade_after_rejection(user_id)
    subject, body = email_service.rejection_email(first_name=first_name)
    _send(
        cfg,
        candidate_id=candidate_id,
        to_email=to_email,
        template_type=email_service.TEMPLATE_REJECTION,
        subject=subject,
        body=body,
    )
    return {"success": True}


def hire(
    candidate_id: str,
    actor: AuthContext,
    *,
    cfg,
    policy: Optional[PermissiveTransitionPolicy] = None,
) -> dict[str, Any]:
    policy = policy or get_policy(cfg.TRANSITION_POLICY)
    with unit_of_work() as db:
        cand = find_candidate(db, candidate_id=candidate_id, for_update=True)
        previous = str(cand.status or "")
        if normalize_status(previous) == HIRED:
            raise ApiError("INVALID_STATE", "Candidate is already hired")
        policy.validate(previous, HIRED)

        write_status(db, cand, expected=previous, new=HIRED, updated_by=actor.label)
        append_status_change(
            db,
            candidate_id=cand.candidateId,
            previous=previous,
            new=HIRED,
            created_by=actor.label,
            prefix="Candidate hired. ",
        )
        user_id, to_email, first_name = cand.userId, cand.email, cand.firstName

    log.info("candidate=%s hired (was %s) by=%s", candidate_id, previous, actor.label)

    promote_after_hire(user_id)
    subject, body = email_service.offer_email(first_name=first_name)
    _send(
        cfg,
        candidate_id=candidate_id,
        to_email=to_email,
        template_type=email_service.TEMPLATE_OFFER,
        subject=subject,
        body=body,
    )
    return {"success": True}


def schedule_interview(request: ScheduleInterviewRequest, actor: AuthContext, *, cfg) -> dict[str, Any]:
    with unit_of_work() as db:
        cand = find_candidate(db, candidate_id=request.candidateId, for_update=True)
        previous = str(cand.status or "")
        if normalize_status(previous) in EXIT_STATUSES:
            raise ApiError(
                "INVALID_STATE",
                f"Cannot schedule an interview for a {normalize_status(previous)} candidate",
                details={"status": previous},
            )

        now = iso_utc_now()
        interview = Interview(
            interviewId=new_id("INT"),
            candidateId=cand.candidateId,
            scheduledAt=request.scheduledAt,
            durationMinutes=request.durationMinutes,
            interviewerName=request.interviewerName,
            meetingUrl=request.meetingUrl,
            status=INTERVIEW_SCHEDULED_STATE,
            reminderSentAt="",
            createdAt=now,
            updatedAt=now,
        )
        db.add(interview)

        if previous != INTERVIEW_SCHEDULED:
            write_status(db, cand, expected=previous, new=INTERVIEW_SCHEDULED, updated_by=actor.label)
            append_status_change(
                db,
                candidate_id=cand.candidateId,
                previous=previous,
                new=INTERVIEW_SCHEDULED,
                created_by=actor.label,
                prefix="Interview scheduled. ",
            )
        interview_id, to_email, first_name = interview.interviewId, cand.email, cand.firstName

    log.info("interview=%s scheduled for candidate=%s at %s", interview_id, request.candidateId, request.scheduledAt)

    subject, body = email_service.interview_invite_email(
        first_name=first_name,
        scheduled_at=request.scheduledAt,
        duration_minutes=request.durationMinutes,
        interviewer_name=request.interviewerName,
        meeting_url=request.meetingUrl,
        display_tz=cfg.APP_TIMEZONE,
    )
    _send(
        cfg,
        candidate_id=request.candidateId,
        to_email=to_email,
        template_type=email_service.TEMPLATE_INTERVIEW_INVITE,
        subject=subject,
        body=body,
    )
    return {"id": interview_id, "success": True}


def delete_interview(interview_id: str, actor: AuthContext, *, cfg) -> dict[str, Any]:
    with unit_of_work() as db:
        interview, cand = lock_interview_with_candidate(db, interview_id=interview_id)

        db.delete(interview)
        db.flush()

        reverted = False
        if cand is not None:
            reverted = revert_after_interview_delete(db, cand, created_by=actor.label)

    log.info("interview=%s deleted by=%s reverted=%s", interview_id, actor.label, reverted)
    return {"success": True, "message": "Interview deleted"}


def complete_interview(interview_id: str, actor: AuthContext, *, cfg) -> dict[str, Any]:
    with unit_of_work() as db:
        interview, cand = lock_interview_with_candidate(db, interview_id=interview_id)
        if cand is None:
            raise ApiError("NOT_FOUND", "Candidate not found")
        previous = complete_single_interview(db, interview, cand, created_by=actor.label)

    log.info("interview=%s completed; candidate=%s was %s", interview_id, cand.candidateId, previous)
    return {"success": True, "message": "Interview marked as completed"}


def create_candidate(request: CandidateIntakeRequest, actor: AuthContext, *, cfg) -> dict[str, Any]:
    with unit_of_work() as db:
        if request.email:
            dup = db.execute(select(Candidate.candidateId).where(Candidate.email == request.email)).first()
            if dup:
                raise ApiError("CONFLICT", "A candidate with this email already exists", status=409)

        user_id = ""
        if request.email:
            user = find_user_by_email(db, request.email)
            if user is None:
                user = create_candidate_account(db, email=request.email, name=f"{request.firstName} {request.lastName}")
            elif str(user.role or "").upper() == ROLE_ADMIN:
                raise ApiError("CONFLICT", "Email belongs to an administrator account", status=409)
            user_id = user.userId

        now = iso_utc_now()
        cand = Candidate(
            candidateId=new_id("CAND"),
            userId=user_id,
            firstName=request.firstName,
            lastName=request.lastName,
            email=request.email,
            phoneNumber=request.phoneNumber,
            addressLine1=request.addressLine1,
            addressLine2=request.addressLine2,
            city=request.city,
            state=request.state,
            zipCode=request.zipCode,
            status=NEW,
            createdAt=now,
            createdBy=actor.label,
            updatedAt=now,
            updatedBy=actor.label,
        )
        db.add(cand)
        candidate_id = cand.candidateId

    log.info("candidate=%s created by=%s", candidate_id, actor.label)
    return {"id": candidate_id, "userId": user_id or None, "success": True}


def delete_candidate(candidate_id: str, actor: AuthContext, *, cfg) -> dict[str, Any]:
    """
    Permanently remove a candidate with its interviews, e-mail log, audit trail
    and linked account. One RBT_DELETED entry survives as the tombstone.
    """
    with unit_of_work() as db:
        cand = find_candidate(db, candidate_id=candidate_id, for_update=True)
        contact = cand.email or cand.phoneNumber or "no contact"
        tombstone = f"RBT permanently deleted: {cand.fullName} ({contact})"

        db.execute(delete(Interview).where(Interview.candidateId == cand.candidateId))
        db.execute(delete(EmailLog).where(EmailLog.candidateId == cand.candidateId))
        db.execute(delete(AuditLogEntry).where(AuditLogEntry.candidateId == cand.candidateId))
        if cand.userId:
            db.execute(delete(User).where(User.userId == cand.userId).where(User.role != ROLE_ADMIN))
        db.delete(cand)

        append_audit(
            db,
            candidate_id=candidate_id,
            audit_type=AUDIT_RBT_DELETED,
            notes=tombstone,
            created_by=actor.label,
        )

    log.info("candidate=%s permanently deleted by=%s", candidate_id, actor.label)
    return {"success": True, "message": "Candidate deleted"}


def send_candidate_email(candidate_id: str, request: SendEmailRequest, actor: AuthContext, *, cfg) -> dict[str, Any]:
    """Send an ad-hoc template to the candidate now; the pipeline status is left alone."""
    with unit_of_work() as db:
        cand = find_candidate(db, candidate_id=candidate_id)
        to_email, first_name = cand.email, cand.firstName
    if not to_email:
        raise ApiError("NOT_FOUND", "Candidate has no email address")

    templates = {email_service.TEMPLATE_REACH_OUT: email_service.reach_out_email}
    subject, body = templates[request.templateType](first_name=first_name)
    delivered = email_service.send_email(
        cfg,
        candidate_id=candidate_id,
        template_type=request.templateType,
        to_email=to_email,
        subject=subject,
        body=body,
    )
    if not delivered:
        raise ApiError("INTERNAL", "Email delivery failed", details={"templateType": request.templateType})

    log.info("candidate=%s sent %s email by=%s", candidate_id, request.templateType, actor.label)
    message = "Email sent successfully" if cfg.EMAIL_API_KEY else "Email logged (dev mode)"
    return {"success": True, "message": message}
