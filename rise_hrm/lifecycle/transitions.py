"""
Status transition validation.

Two policies share one contract, `validate(current, requested) -> TransitionDecision`:

- `PermissiveTransitionPolicy` (default) accepts any known status from any
  status. Admins use the status dropdown to correct mistakes, so nothing is
  blocked.
- `StrictTransitionPolicy` is opt-in (`TRANSITION_POLICY=strict`) and only
  allows the edges in `STRICT_TRANSITIONS`. Re-setting the current status is
  always allowed.

Both reject values outside `CANDIDATE_STATUSES` and report which side effects
the orchestrator must run for the requested status.
"""

from __future__ import annotations

from dataclasses import dataclass

from rise_hrm.lifecycle.statuses import (
    CANDIDATE_STATUSES,
    HIRED,
    INTERVIEW_COMPLETED,
    INTERVIEW_SCHEDULED,
    NEW,
    REACH_OUT,
    REACH_OUT_EMAIL_SENT,
    REJECTED,
    TO_INTERVIEW,
    normalize_status,
)
from rise_hrm.utils.errors import ApiError


STRICT_TRANSITIONS: dict[str, frozenset[str]] = {
    NEW: frozenset({REACH_OUT, REACH_OUT_EMAIL_SENT, TO_INTERVIEW, INTERVIEW_SCHEDULED, REJECTED}),
    REACH_OUT: frozenset({REACH_OUT_EMAIL_SENT, TO_INTERVIEW, INTERVIEW_SCHEDULED, REJECTED}),
    REACH_OUT_EMAIL_SENT: frozenset({TO_INTERVIEW, INTERVIEW_SCHEDULED, REJECTED}),
    TO_INTERVIEW: frozenset({REACH_OUT_EMAIL_SENT, INTERVIEW_SCHEDULED, REJECTED}),
    INTERVIEW_SCHEDULED: frozenset({REACH_OUT_EMAIL_SENT, TO_INTERVIEW, INTERVIEW_COMPLETED, REJECTED}),
    INTERVIEW_COMPLETED: frozenset({INTERVIEW_SCHEDULED, HIRED, REJECTED}),
    HIRED: frozenset(),
    REJECTED: frozenset(),
}


@dataclass(frozen=True)
class TransitionDecision:
    previous: str
    requested: str
    close_scheduled_interviews: bool = False


def _checked_status(value: str, *, label: str) -> str:
    status = normalize_status(value)
    if status not in CANDIDATE_STATUSES:
        raise ApiError(
            "BAD_REQUEST",
            f"Invalid {label} status: {value!r}",
            details={"allowed": list(CANDIDATE_STATUSES)},
        )
    return status


class PermissiveTransitionPolicy:
    name = "permissive"

    def is_allowed(self, current: str, requested: str) -> bool:
        return True

    def allowed_from(self, current: str) -> list[str]:
        return list(CANDIDATE_STATUSES)

    def validate(self, current: str, requested: str) -> TransitionDecision:
        requested_u = _checked_status(requested, label="requested")
        # Legacy rows may carry values outside the enum; only the requested value must be known.
        current_u = normalize_status(current)
        if not self.is_allowed(current_u, requested_u):
            raise ApiError(
                "INVALID_STATE",
                f"Cannot change status from {current_u} to {requested_u}",
                details={
                    "from": current_u,
                    "to": requested_u,
                    "policy": self.name,
                    "allowed": self.allowed_from(current_u),
                },
            )
        return TransitionDecision(
            previous=current_u,
            requested=requested_u,
            close_scheduled_interviews=requested_u == INTERVIEW_COMPLETED,
        )


class StrictTransitionPolicy(PermissiveTransitionPolicy):
    name = "strict"

    def __init__(self, transitions: dict[str, frozenset[str]] | None = None):
        self._transitions = transitions if transitions is not None else STRICT_TRANSITIONS

    def is_allowed(self, current: str, requested: str) -> bool:
        if current == requested:
            return True
        return requested in self._transitions.get(current, frozenset())

    def allowed_from(self, current: str) -> list[str]:
        targets = self._transitions.get(normalize_status(current), frozenset())
        return [s for s in CANDIDATE_STATUSES if s in targets]


_POLICIES = {
    PermissiveTransitionPolicy.name: PermissiveTransitionPolicy,
    StrictTransitionPolicy.name: StrictTransitionPolicy,
}


def get_policy(name: str | None) -> PermissiveTransitionPolicy:
    key = str(name or PermissiveTransitionPolicy.name).strip().lower()
    cls = _POLICIES.get(key)
    if cls is None:
        raise ValueError(f"Unknown transition policy: {name!r}")
    return cls()
