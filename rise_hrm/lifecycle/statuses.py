from __future__ import annotations

# Candidate pipeline statuses, in pipeline order.
NEW = "NEW"
REACH_OUT = "REACH_OUT"
REACH_OUT_EMAIL_SENT = "REACH_OUT_EMAIL_SENT"
TO_INTERVIEW = "TO_INTERVIEW"
INTERVIEW_SCHEDULED = "INTERVIEW_SCHEDULED"
INTERVIEW_COMPLETED = "INTERVIEW_COMPLETED"
HIRED = "HIRED"
REJECTED = "REJECTED"

CANDIDATE_STATUSES: tuple[str, ...] = (
    NEW,
    REACH_OUT,
    REACH_OUT_EMAIL_SENT,
    TO_INTERVIEW,
    INTERVIEW_SCHEDULED,
    INTERVIEW_COMPLETED,
    HIRED,
    REJECTED,
)

EXIT_STATUSES = frozenset({HIRED, REJECTED})

# Where a candidate lands when its last scheduled interview is deleted.
# Fixed literal; the status held before scheduling is not tracked.
INTERVIEW_DELETE_REVERT_STATUS = REACH_OUT_EMAIL_SENT

INTERVIEW_SCHEDULED_STATE = "SCHEDULED"
INTERVIEW_COMPLETED_STATE = "COMPLETED"
INTERVIEW_STATES = (INTERVIEW_SCHEDULED_STATE, INTERVIEW_COMPLETED_STATE)

AUDIT_STATUS_CHANGE = "STATUS_CHANGE"
AUDIT_RBT_DELETED = "RBT_DELETED"
MANUAL_AUDIT_TYPES = ("NOTE", "CALL", "EMAIL", "BACKGROUND_CHECK", "OTHER")

ROLE_ADMIN = "ADMIN"
ROLE_RBT = "RBT"
ROLE_CANDIDATE = "CANDIDATE"

ACCOUNT_ACTIVE = "ACTIVE"
ACCOUNT_INACTIVE = "INACTIVE"


def normalize_status(value) -> str:
    return str(value or "").strip().upper()
