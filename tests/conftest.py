import sys
from pathlib import Path

import pytest


BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "password123"


@pytest.fixture()
def app_client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    db_path = tmp_path / "test.db"

    monkeypatch.setenv("ENV", "testing")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path.as_posix()}")
    monkeypatch.setenv("BOOTSTRAP_TOKEN", "test-bootstrap")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    # Prevent accidental pollution from any existing env config.
    for name in ("EMAIL_API_KEY", "RESEND_API_KEY", "TRANSITION_POLICY", "EMAIL_SEND_ASYNC", "APP_ENV"):
        monkeypatch.delenv(name, raising=False)

    from rise_hrm import create_app
    from rise_hrm.middlewares.rate_limit import limiter

    limiter.reset()

    app = create_app()
    app.testing = True

    with app.test_client() as client:
        yield app, client


@pytest.fixture()
def admin_headers(app_client):
    from rise_hrm.db import SessionLocal
    from rise_hrm.models import User
    from rise_hrm.utils.auth import hash_password
    from rise_hrm.utils.datetime import iso_utc_now

    _app, client = app_client
    now = iso_utc_now()
    with SessionLocal() as db:
        db.add(
            User(
                userId="USR-ADMIN",
                email=ADMIN_EMAIL,
                name="Admin User",
                passwordHash=hash_password(ADMIN_PASSWORD),
                role="ADMIN",
                status="ACTIVE",
                lastLoginAt="",
                createdAt=now,
                updatedAt=now,
            )
        )
        db.commit()

    res = client.post("/api/v1/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 200
    token = res.get_json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_candidate(app_client):
    from rise_hrm.db import SessionLocal
    from rise_hrm.models import Candidate, User
    from rise_hrm.utils.datetime import iso_utc_now

    counter = {"n": 0}

    def _make(*, status: str = "NEW", email: str | None = None, user_role: str | None = None) -> str:
        counter["n"] += 1
        n = counter["n"]
        candidate_id = f"CAND-{n:04d}"
        email = email if email is not None else f"candidate{n}@example.com"
        now = iso_utc_now()
        with SessionLocal() as db:
            user_id = ""
            if user_role:
                user_id = f"USR-C{n:04d}"
                db.add(
                    User(
                        userId=user_id,
                        email=email,
                        name=f"Casey {n}",
                        passwordHash="",
                        role=user_role,
                        status="ACTIVE",
                        lastLoginAt="",
                        createdAt=now,
                        updatedAt=now,
                    )
                )
            db.add(
                Candidate(
                    candidateId=candidate_id,
                    userId=user_id,
                    firstName="Casey",
                    lastName=f"Tester{n}",
                    email=email,
                    phoneNumber="5551234567",
                    status=status,
                    createdAt=now,
                    createdBy="TEST",
                    updatedAt=now,
                    updatedBy="TEST",
                )
            )
            db.commit()
        return candidate_id

    return _make


@pytest.fixture()
def make_interview(app_client):
    from rise_hrm.db import SessionLocal
    from rise_hrm.models import Interview
    from rise_hrm.utils.datetime import iso_utc_now

    counter = {"n": 0}

    def _make(candidate_id: str, *, status: str = "SCHEDULED", scheduled_at: str = "2026-03-02T15:00:00.000Z") -> str:
        counter["n"] += 1
        interview_id = f"INT-{counter['n']:04d}"
        now = iso_utc_now()
        with SessionLocal() as db:
            db.add(
                Interview(
                    interviewId=interview_id,
                    candidateId=candidate_id,
                    scheduledAt=scheduled_at,
                    durationMinutes=15,
                    interviewerName="Jordan",
                    meetingUrl="https://meet.google.com/abc-defg-hij",
                    status=status,
                    reminderSentAt="",
                    createdAt=now,
                    updatedAt=now,
                )
            )
            db.commit()
        return interview_id

    return _make
