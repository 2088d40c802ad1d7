from __future__ import annotations


def test_status_endpoint_returns_status_only(app_client, admin_headers, make_candidate):
    _app, client = app_client
    cid = make_candidate(status="NEW")

    res = client.patch(f"/api/v1/candidates/{cid}/status", headers=admin_headers, json={"status": "REACH_OUT"})
    assert res.status_code == 200
    assert res.get_json() == {"status": "REACH_OUT"}

    res = client.get(f"/api/v1/candidates/{cid}", headers=admin_headers)
    data = res.get_json()["data"]
    assert data["status"] == "REACH_OUT"
    assert data["auditLogs"][0]["notes"] == "Status changed from NEW to REACH_OUT"


def test_status_endpoint_validation(app_client, admin_headers, make_candidate):
    _app, client = app_client
    cid = make_candidate()

    res = client.patch(f"/api/v1/candidates/{cid}/status", headers=admin_headers, json={"status": "BOGUS"})
    assert res.status_code == 400
    assert res.get_json()["code"] == "BAD_REQUEST"

    res = client.patch(
        f"/api/v1/candidates/{cid}/status", headers=admin_headers, json={"status": "HIRED", "force": True}
    )
    assert res.status_code == 400
    assert "force" in res.get_json()["error"]

    res = client.patch(f"/api/v1/candidates/{cid}/status", headers=admin_headers, json={"status": 5})
    assert res.status_code == 400

    res = client.patch("/api/v1/candidates/CAND-nope/status", headers=admin_headers, json={"status": "NEW"})
    assert res.status_code == 404
    assert res.get_json()["error"] == "Candidate not found"


def test_strict_policy_over_http(app_client, admin_headers, make_candidate, monkeypatch):
    app, client = app_client
    from rise_hrm.config import TestingConfig

    monkeypatch.setenv("TRANSITION_POLICY", "strict")
    app.config["CFG"] = TestingConfig()
    cid = make_candidate(status="NEW")

    res = client.patch(f"/api/v1/candidates/{cid}/status", headers=admin_headers, json={"status": "HIRED"})
    assert res.status_code == 400
    body = res.get_json()
    assert body["code"] == "INVALID_STATE"
    assert body["details"]["policy"] == "strict"
    assert body["details"]["from"] == "NEW"
    assert "HIRED" not in body["details"]["allowed"]


def test_reject_endpoint(app_client, admin_headers, make_candidate):
    _app, client = app_client
    cid = make_candidate(status="INTERVIEW_COMPLETED", user_role="RBT")

    res = client.post(f"/api/v1/candidates/{cid}/reject", headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json() == {"success": True}

    res = client.get(f"/api/v1/candidates/{cid}", headers=admin_headers)
    assert res.get_json()["data"]["status"] == "REJECTED"


def test_hire_endpoint(app_client, admin_headers, make_candidate):
    _app, client = app_client
    cid = make_candidate(status="INTERVIEW_COMPLETED")

    res = client.post(f"/api/v1/candidates/{cid}/hire", headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json() == {"success": True}

    res = client.post(f"/api/v1/candidates/{cid}/hire", headers=admin_headers)
    assert res.status_code == 400
    assert res.get_json()["code"] == "INVALID_STATE"


def test_create_list_and_delete_candidate(app_client, admin_headers):
    _app, client = app_client

    res = client.post(
        "/api/v1/candidates",
        headers=admin_headers,
        json={"firstName": "Avery", "lastName": "Lane", "email": "avery@example.com", "phoneNumber": "5550001111"},
    )
    assert res.status_code == 201
    cid = res.get_json()["id"]

    res = client.post("/api/v1/candidates", headers=admin_headers, json={"firstName": "No", "lastName": "Contact"})
    assert res.status_code == 400

    res = client.get("/api/v1/candidates?status=new", headers=admin_headers)
    items = res.get_json()["data"]["items"]
    assert [c["id"] for c in items] == [cid]

    res = client.get("/api/v1/candidates?q=lane", headers=admin_headers)
    assert res.get_json()["data"]["total"] == 1

    res = client.get("/api/v1/candidates?status=HIRED", headers=admin_headers)
    assert res.get_json()["data"]["total"] == 0

    res = client.get("/api/v1/candidates?status=STALLED", headers=admin_headers)
    assert res.status_code == 400

    res = client.delete(f"/api/v1/candidates/{cid}", headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json()["success"] is True

    res = client.get(f"/api/v1/candidates/{cid}", headers=admin_headers)
    assert res.status_code == 404


def test_non_admin_is_forbidden(app_client, make_candidate):
    _app, client = app_client
    from rise_hrm.db import SessionLocal
    from rise_hrm.models import User
    from rise_hrm.utils.auth import hash_password

    with SessionLocal() as db:
        db.add(
            User(
                userId="USR-RBT",
                email="rbt@example.com",
                name="Robin",
                passwordHash=hash_password("password123"),
                role="RBT",
                status="ACTIVE",
            )
        )
        db.commit()

    res = client.post("/api/v1/auth/login", json={"email": "rbt@example.com", "password": "password123"})
    headers = {"Authorization": f"Bearer {res.get_json()['data']['access_token']}"}
    cid = make_candidate()

    res = client.patch(f"/api/v1/candidates/{cid}/status", headers=headers, json={"status": "REJECTED"})
    assert res.status_code == 403
    assert res.get_json()["code"] == "FORBIDDEN"


def test_send_reach_out_email(app_client, admin_headers, make_candidate):
    _app, client = app_client
    from sqlalchemy import select

    from rise_hrm.db import SessionLocal
    from rise_hrm.models import EmailLog

    cid = make_candidate(status="REACH_OUT")

    res = client.post(f"/api/v1/candidates/{cid}/send-email", headers=admin_headers, json={"templateType": "REACH_OUT"})
    assert res.status_code == 200
    assert res.get_json()["message"] == "Email logged (dev mode)"

    with SessionLocal() as db:
        logs = db.execute(select(EmailLog).where(EmailLog.candidateId == cid)).scalars().all()
    assert [l.templateType for l in logs] == ["REACH_OUT"]

    res = client.get(f"/api/v1/candidates/{cid}", headers=admin_headers)
    assert res.get_json()["data"]["status"] == "REACH_OUT"

    res = client.post(f"/api/v1/candidates/{cid}/send-email", headers=admin_headers, json={"templateType": "OFFER"})
    assert res.status_code == 400

    no_email = make_candidate(email="")
    res = client.post(
        f"/api/v1/candidates/{no_email}/send-email", headers=admin_headers, json={"templateType": "REACH_OUT"}
    )
    assert res.status_code == 404
