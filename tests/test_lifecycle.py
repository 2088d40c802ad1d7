from __future__ import annotations

import pytest
from sqlalchemy import select, update

from rise_hrm.db import SessionLocal
from rise_hrm.lifecycle import orchestrator
from rise_hrm.lifecycle.requests import CandidateIntakeRequest, ScheduleInterviewRequest
from rise_hrm.lifecycle.transitions import PermissiveTransitionPolicy, TransitionDecision, get_policy
from rise_hrm.models import AuditLogEntry, Candidate, EmailLog, Interview, User
from rise_hrm.utils.auth import AuthContext
from rise_hrm.utils.errors import ApiError

ACTOR = AuthContext(userId="USR-ADMIN", email="admin@example.com", role="ADMIN", name="Admin User")


def _status(candidate_id: str) -> str:
    with SessionLocal() as db:
        return db.execute(select(Candidate.status).where(Candidate.candidateId == candidate_id)).scalar_one()


def _audit(candidate_id: str) -> list[AuditLogEntry]:
    with SessionLocal() as db:
        return list(
            db.execute(select(AuditLogEntry).where(AuditLogEntry.candidateId == candidate_id).order_by(AuditLogEntry.createdAt))
            .scalars()
            .all()
        )


def _interview_states(candidate_id: str) -> dict[str, str]:
    with SessionLocal() as db:
        rows = db.execute(select(Interview.interviewId, Interview.status).where(Interview.candidateId == candidate_id)).all()
    return {i: s for i, s in rows}


def test_set_status_writes_one_audit_entry_with_both_statuses(app_client, make_candidate):
    app, _client = app_client
    cid = make_candidate(status="NEW")

    out = orchestrator.set_status(cid, "reach_out", ACTOR, cfg=app.config["CFG"])

    assert out == {"status": "REACH_OUT"}
    assert _status(cid) == "REACH_OUT"
    entries = _audit(cid)
    assert len(entries) == 1
    assert entries[0].auditType == "STATUS_CHANGE"
    assert entries[0].notes == "Status changed from NEW to REACH_OUT"
    assert entries[0].createdBy == "admin@example.com"


def test_set_status_to_same_value_is_still_audited(app_client, make_candidate):
    app, _client = app_client
    cid = make_candidate(status="TO_INTERVIEW")

    orchestrator.set_status(cid, "TO_INTERVIEW", ACTOR, cfg=app.config["CFG"])

    entries = _audit(cid)
    assert [e.notes for e in entries] == ["Status changed from TO_INTERVIEW to TO_INTERVIEW"]


def test_set_status_interview_completed_closes_all_scheduled(app_client, make_candidate, make_interview):
    app, _client = app_client
    cid = make_candidate(status="INTERVIEW_SCHEDULED")
    make_interview(cid)
    make_interview(cid)
    make_interview(cid, status="COMPLETED")
    other = make_candidate(status="INTERVIEW_SCHEDULED")
    other_interview = make_interview(other)

    orchestrator.set_status(cid, "INTERVIEW_COMPLETED", ACTOR, cfg=app.config["CFG"])

    assert set(_interview_states(cid).values()) == {"COMPLETED"}
    assert _interview_states(other) == {other_interview: "SCHEDULED"}
    assert len(_audit(cid)) == 1


def test_set_status_unknown_candidate_and_status(app_client, make_candidate):
    app, _client = app_client
    cfg = app.config["CFG"]

    with pytest.raises(ApiError) as exc:
        orchestrator.set_status("CAND-missing", "NEW", ACTOR, cfg=cfg)
    assert exc.value.code == "NOT_FOUND"

    cid = make_candidate()
    with pytest.raises(ApiError) as exc:
        orchestrator.set_status(cid, "ON_HOLD", ACTOR, cfg=cfg)
    assert exc.value.code == "BAD_REQUEST"
    assert _status(cid) == "NEW"
    assert _audit(cid) == []


def test_strict_policy_rejects_and_writes_nothing(app_client, make_candidate):
    app, _client = app_client
    cid = make_candidate(status="NEW")

    with pytest.raises(ApiError) as exc:
        orchestrator.set_status(cid, "HIRED", ACTOR, cfg=app.config["CFG"], policy=get_policy("strict"))

    assert exc.value.code == "INVALID_STATE"
    assert _status(cid) == "NEW"
    assert _audit(cid) == []


def test_delete_only_scheduled_interview_reverts_status(app_client, make_candidate, make_interview):
    app, _client = app_client
    cid = make_candidate(status="INTERVIEW_SCHEDULED")
    iid = make_interview(cid)

    out = orchestrator.delete_interview(iid, ACTOR, cfg=app.config["CFG"])

    assert out["success"] is True
    assert _status(cid) == "REACH_OUT_EMAIL_SENT"
    assert _interview_states(cid) == {}
    entries = _audit(cid)
    assert len(entries) == 1
    assert entries[0].notes == "Interview deleted. Status changed from INTERVIEW_SCHEDULED to REACH_OUT_EMAIL_SENT"


def test_delete_one_of_two_scheduled_interviews_keeps_status(app_client, make_candidate, make_interview):
    app, _client = app_client
    cid = make_candidate(status="INTERVIEW_SCHEDULED")
    first = make_interview(cid)
    second = make_interview(cid)

    orchestrator.delete_interview(first, ACTOR, cfg=app.config["CFG"])

    assert _status(cid) == "INTERVIEW_SCHEDULED"
    assert _interview_states(cid) == {second: "SCHEDULED"}
    assert _audit(cid) == []


def test_delete_last_interview_leaves_other_statuses_alone(app_client, make_candidate, make_interview):
    app, _client = app_client
    cid = make_candidate(status="TO_INTERVIEW")
    iid = make_interview(cid)

    orchestrator.delete_interview(iid, ACTOR, cfg=app.config["CFG"])

    assert _status(cid) == "TO_INTERVIEW"
    assert _audit(cid) == []


def test_complete_interview(app_client, make_candidate, make_interview):
    app, _client = app_client
    cid = make_candidate(status="INTERVIEW_SCHEDULED")
    iid = make_interview(cid)
    other = make_interview(cid)

    out = orchestrator.complete_interview(iid, ACTOR, cfg=app.config["CFG"])

    assert out["success"] is True
    assert _status(cid) == "INTERVIEW_COMPLETED"
    assert _interview_states(cid) == {iid: "COMPLETED", other: "SCHEDULED"}
    entries = _audit(cid)
    assert len(entries) == 1
    assert "from INTERVIEW_SCHEDULED to INTERVIEW_COMPLETED" in entries[0].notes


def test_complete_interview_twice_is_invalid_state_and_writes_nothing(app_client, make_candidate, make_interview):
    app, _client = app_client
    cid = make_candidate(status="TO_INTERVIEW")
    iid = make_interview(cid, status="COMPLETED")

    with pytest.raises(ApiError) as exc:
        orchestrator.complete_interview(iid, ACTOR, cfg=app.config["CFG"])

    assert exc.value.code == "INVALID_STATE"
    assert exc.value.status == 400
    assert _status(cid) == "TO_INTERVIEW"
    assert _audit(cid) == []


def test_reject_downgrades_linked_account(app_client, make_candidate):
    app, _client = app_client
    cid = make_candidate(status="INTERVIEW_COMPLETED", user_role="RBT")

    assert orchestrator.reject(cid, ACTOR, cfg=app.config["CFG"]) == {"success": True}

    assert _status(cid) == "REJECTED"
    with SessionLocal() as db:
        user = db.execute(select(User).where(User.email == "candidate1@example.com")).scalar_one()
        assert user.role == "CANDIDATE"
        assert user.status == "INACTIVE"
        emails = db.execute(select(EmailLog).where(EmailLog.candidateId == cid)).scalars().all()
    assert [e.templateType for e in emails] == ["REJECTION"]
    assert [e.notes for e in _audit(cid)] == ["Candidate rejected. Status changed from INTERVIEW_COMPLETED to REJECTED"]


def test_reject_keeps_candidate_account_untouched(app_client, make_candidate):
    app, _client = app_client
    cid = make_candidate(status="NEW", user_role="CANDIDATE")

    orchestrator.reject(cid, ACTOR, cfg=app.config["CFG"])

    with SessionLocal() as db:
        user = db.execute(select(User).where(User.email == "candidate1@example.com")).scalar_one()
    assert user.status == "ACTIVE"


def test_reject_survives_account_and_email_failures(app_client, make_candidate, monkeypatch):
    app, _client = app_client
    cid = make_candidate(status="TO_INTERVIEW", user_role="RBT")

    import rise_hrm.lifecycle.accounts as accounts

    def boom(*_args, **_kwargs):
        raise RuntimeError("account store unavailable")

    monkeypatch.setattr(accounts, "_update_linked_account", boom)
    monkeypatch.setattr(orchestrator.email_service, "send_email", boom)

    assert orchestrator.reject(cid, ACTOR, cfg=app.config["CFG"]) == {"success": True}
    assert _status(cid) == "REJECTED"
    assert len(_audit(cid)) == 1


def test_reject_already_rejected_still_audits(app_client, make_candidate):
    app, _client = app_client
    cid = make_candidate(status="REJECTED")

    orchestrator.reject(cid, ACTOR, cfg=app.config["CFG"])

    assert _status(cid) == "REJECTED"
    assert len(_audit(cid)) == 1


class _RacingPolicy(PermissiveTransitionPolicy):
    """Commits a competing status change between the read and the write."""

    def __init__(self, candidate_id: str, competing_status: str):
        self.candidate_id = candidate_id
        self.competing_status = competing_status

    def validate(self, current: str, requested: str) -> TransitionDecision:
        decision = super().validate(current, requested)
        with SessionLocal() as other:
            other.execute(
                update(Candidate)
                .where(Candidate.candidateId == self.candidate_id)
                .values(status=self.competing_status)
            )
            other.commit()
        return decision


def test_concurrent_change_aborts_without_audit(app_client, make_candidate):
    app, _client = app_client
    cid = make_candidate(status="NEW")

    with pytest.raises(ApiError) as exc:
        orchestrator.set_status(
            cid,
            "TO_INTERVIEW",
            ACTOR,
            cfg=app.config["CFG"],
            policy=_RacingPolicy(cid, "REACH_OUT"),
        )

    assert exc.value.code == "INVALID_STATE"
    assert _status(cid) == "REACH_OUT"
    assert _audit(cid) == []

    # A retry from the fresh state records the value it actually replaced.
    orchestrator.set_status(cid, "TO_INTERVIEW", ACTOR, cfg=app.config["CFG"])
    assert [e.notes for e in _audit(cid)] == ["Status changed from REACH_OUT to TO_INTERVIEW"]


@pytest.fixture()
def row_locks(app_client):
    """Tables locked with SELECT ... FOR UPDATE, in the order the locks were taken."""
    from sqlalchemy import event
    from sqlalchemy.dialects import postgresql

    taken: list[str] = []

    def _record(state):
        if not state.is_select:
            return
        # SQLite drops FOR UPDATE; render as Postgres to see the lock.
        if "FOR UPDATE" in str(state.statement.compile(dialect=postgresql.dialect())):
            taken.append(state.statement.get_final_froms()[0].name)

    event.listen(SessionLocal, "do_orm_execute", _record)
    yield taken
    event.remove(SessionLocal, "do_orm_execute", _record)


def test_complete_interview_locks_candidate_before_interview(app_client, make_candidate, make_interview, row_locks):
    app, _client = app_client
    cid = make_candidate(status="INTERVIEW_SCHEDULED")
    iid = make_interview(cid)

    orchestrator.complete_interview(iid, ACTOR, cfg=app.config["CFG"])

    assert row_locks == ["candidates", "interviews"]


def test_delete_interview_locks_candidate_before_interview(app_client, make_candidate, make_interview, row_locks):
    app, _client = app_client
    cid = make_candidate(status="INTERVIEW_SCHEDULED")
    iid = make_interview(cid)

    orchestrator.delete_interview(iid, ACTOR, cfg=app.config["CFG"])

    assert row_locks == ["candidates", "interviews"]
    assert _status(cid) == "REACH_OUT_EMAIL_SENT"


def test_set_status_locks_only_the_candidate_row(app_client, make_candidate, make_interview, row_locks):
    app, _client = app_client
    cid = make_candidate(status="INTERVIEW_SCHEDULED")
    make_interview(cid)

    orchestrator.set_status(cid, "INTERVIEW_COMPLETED", ACTOR, cfg=app.config["CFG"])

    assert row_locks == ["candidates"]


def test_delete_interview_of_removed_candidate_still_deletes(app_client, make_candidate, make_interview):
    app, _client = app_client
    cid = make_candidate(status="INTERVIEW_SCHEDULED")
    iid = make_interview(cid)
    with SessionLocal() as db:
        db.delete(db.get(Candidate, cid))
        db.commit()

    orchestrator.delete_interview(iid, ACTOR, cfg=app.config["CFG"])

    assert _interview_states(cid) == {}
    with pytest.raises(ApiError) as exc:
        orchestrator.complete_interview(iid, ACTOR, cfg=app.config["CFG"])
    assert exc.value.code == "NOT_FOUND"


def test_schedule_interview_moves_candidate_and_sends_invite(app_client, make_candidate):
    app, _client = app_client
    cid = make_candidate(status="REACH_OUT_EMAIL_SENT")
    req = ScheduleInterviewRequest.from_body(
        {"candidateId": cid, "scheduledAt": "2026-03-02T10:00:00", "interviewerName": "Jordan"},
        app_timezone="America/New_York",
    )

    out = orchestrator.schedule_interview(req, ACTOR, cfg=app.config["CFG"])

    assert out["success"] is True
    assert out["id"].startswith("INT-")
    assert _status(cid) == "INTERVIEW_SCHEDULED"
    with SessionLocal() as db:
        interview = db.execute(select(Interview).where(Interview.interviewId == out["id"])).scalar_one()
        emails = db.execute(select(EmailLog).where(EmailLog.candidateId == cid)).scalars().all()
    # 10:00 in New York during EST is 15:00 UTC.
    assert interview.scheduledAt == "2026-03-02T15:00:00.000Z"
    assert interview.durationMinutes == 15
    assert interview.meetingUrl.startswith("https://meet.google.com/")
    assert [e.templateType for e in emails] == ["INTERVIEW_INVITE"]
    assert [e.notes for e in _audit(cid)] == [
        "Interview scheduled. Status changed from REACH_OUT_EMAIL_SENT to INTERVIEW_SCHEDULED"
    ]


def test_schedule_second_interview_does_not_change_status(app_client, make_candidate, make_interview):
    app, _client = app_client
    cid = make_candidate(status="INTERVIEW_SCHEDULED")
    make_interview(cid)
    req = ScheduleInterviewRequest.from_body(
        {"candidateId": cid, "scheduledAt": "2026-03-03T15:00:00Z", "interviewerName": "Sam", "durationMinutes": 30},
        app_timezone="America/New_York",
    )

    orchestrator.schedule_interview(req, ACTOR, cfg=app.config["CFG"])

    assert list(_interview_states(cid).values()) == ["SCHEDULED", "SCHEDULED"]
    assert _audit(cid) == []


def test_schedule_for_hired_candidate_is_invalid_state(app_client, make_candidate):
    app, _client = app_client
    cid = make_candidate(status="HIRED")
    req = ScheduleInterviewRequest.from_body(
        {"candidateId": cid, "scheduledAt": "2026-03-03T15:00:00Z", "interviewerName": "Sam"},
        app_timezone="America/New_York",
    )

    with pytest.raises(ApiError) as exc:
        orchestrator.schedule_interview(req, ACTOR, cfg=app.config["CFG"])
    assert exc.value.code == "INVALID_STATE"
    assert _interview_states(cid) == {}


def test_hire_promotes_account(app_client, make_candidate):
    app, _client = app_client
    cid = make_candidate(status="INTERVIEW_COMPLETED", user_role="CANDIDATE")

    assert orchestrator.hire(cid, ACTOR, cfg=app.config["CFG"]) == {"success": True}

    assert _status(cid) == "HIRED"
    with SessionLocal() as db:
        user = db.execute(select(User).where(User.email == "candidate1@example.com")).scalar_one()
    assert (user.role, user.status) == ("RBT", "ACTIVE")
    assert [e.notes for e in _audit(cid)] == ["Candidate hired. Status changed from INTERVIEW_COMPLETED to HIRED"]

    with pytest.raises(ApiError) as exc:
        orchestrator.hire(cid, ACTOR, cfg=app.config["CFG"])
    assert exc.value.code == "INVALID_STATE"


def test_delete_candidate_leaves_tombstone_only(app_client, make_candidate, make_interview):
    app, _client = app_client
    cfg = app.config["CFG"]
    cid = make_candidate(status="INTERVIEW_SCHEDULED", user_role="CANDIDATE")
    make_interview(cid)
    orchestrator.set_status(cid, "INTERVIEW_COMPLETED", ACTOR, cfg=cfg)

    orchestrator.delete_candidate(cid, ACTOR, cfg=cfg)

    with SessionLocal() as db:
        assert db.execute(select(Candidate).where(Candidate.candidateId == cid)).scalar_one_or_none() is None
        assert db.execute(select(User).where(User.email == "candidate1@example.com")).scalar_one_or_none() is None
    assert _interview_states(cid) == {}
    entries = _audit(cid)
    assert len(entries) == 1
    assert entries[0].auditType == "RBT_DELETED"
    assert entries[0].notes == "RBT permanently deleted: Casey Tester1 (candidate1@example.com)"


def test_create_candidate_links_new_account(app_client):
    app, _client = app_client
    req = CandidateIntakeRequest.from_body(
        {"firstName": "Riley", "lastName": "Shore", "email": "Riley@Example.com", "state": "nj"}
    )

    out = orchestrator.create_candidate(req, ACTOR, cfg=app.config["CFG"])

    with SessionLocal() as db:
        cand = db.execute(select(Candidate).where(Candidate.candidateId == out["id"])).scalar_one()
        user = db.execute(select(User).where(User.userId == out["userId"])).scalar_one()
    assert cand.status == "NEW"
    assert cand.email == "riley@example.com"
    assert cand.state == "NJ"
    assert (user.role, user.email) == ("CANDIDATE", "riley@example.com")

    with pytest.raises(ApiError) as exc:
        orchestrator.create_candidate(req, ACTOR, cfg=app.config["CFG"])
    assert exc.value.status == 409
