from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from rise_hrm.db import SessionLocal, unit_of_work
from rise_hrm.lifecycle import audit, orchestrator
from rise_hrm.lifecycle.candidate_repo import (
    find_candidate,
    list_candidates,
    list_interviews,
    serialize_candidate,
    serialize_interview,
)
from rise_hrm.lifecycle.requests import (
    AuditEntryCreateRequest,
    AuditEntryPatchRequest,
    CandidateIntakeRequest,
    SendEmailRequest,
    StatusUpdateRequest,
)
from rise_hrm.lifecycle.statuses import CANDIDATE_STATUSES, normalize_status
from rise_hrm.utils.auth import current_actor, require_roles
from rise_hrm.utils.errors import ApiError
from rise_hrm.utils.validators import optional_json, require_json

candidates_bp = Blueprint("candidates", __name__)

ADMIN_ONLY = ["ADMIN"]


@candidates_bp.get("/candidates")
@require_roles(ADMIN_ONLY)
def candidates_list():
    status = normalize_status(request.args.get("status"))
    if status and status not in CANDIDATE_STATUSES:
        raise ApiError("BAD_REQUEST", f"Invalid status filter: {status}", status=400)
    search = str(request.args.get("q") or "").strip()

    with SessionLocal() as db:
        rows = list_candidates(db, status=status, search=search)
        items = [serialize_candidate(c) for c in rows]
    return jsonify({"success": True, "data": {"items": items, "total": len(items)}})


@candidates_bp.post("/candidates")
@require_roles(ADMIN_ONLY)
def candidates_create():
    req = CandidateIntakeRequest.from_body(require_json())
    cfg = current_app.config["CFG"]
    return jsonify(orchestrator.create_candidate(req, current_actor(), cfg=cfg)), 201


@candidates_bp.get("/candidates/<candidate_id>")
@require_roles(ADMIN_ONLY)
def candidates_get(candidate_id: str):
    with SessionLocal() as db:
        cand = find_candidate(db, candidate_id=candidate_id)
        data = serialize_candidate(cand)
        data["interviews"] = [serialize_interview(i) for i in list_interviews(db, candidate_id=cand.candidateId)]
        data["auditLogs"] = [audit.serialize_entry(e) for e in audit.list_entries(db, cand.candidateId)]
    return jsonify({"success": True, "data": data})


@candidates_bp.delete("/candidates/<candidate_id>")
@require_roles(ADMIN_ONLY)
def candidates_delete(candidate_id: str):
    cfg = current_app.config["CFG"]
    return jsonify(orchestrator.delete_candidate(candidate_id, current_actor(), cfg=cfg))


@candidates_bp.patch("/candidates/<candidate_id>/status")
@require_roles(ADMIN_ONLY)
def candidates_set_status(candidate_id: str):
    req = StatusUpdateRequest.from_body(require_json())
    cfg = current_app.config["CFG"]
    return jsonify(orchestrator.set_status(candidate_id, req.status, current_actor(), cfg=cfg))


@candidates_bp.post("/candidates/<candidate_id>/reject")
@require_roles(ADMIN_ONLY)
def candidates_reject(candidate_id: str):
    optional_json()
    cfg = current_app.config["CFG"]
    return jsonify(orchestrator.reject(candidate_id, current_actor(), cfg=cfg))


@candidates_bp.post("/candidates/<candidate_id>/hire")
@require_roles(ADMIN_ONLY)
def candidates_hire(candidate_id: str):
    optional_json()
    cfg = current_app.config["CFG"]
    return jsonify(orchestrator.hire(candidate_id, current_actor(), cfg=cfg))


@candidates_bp.post("/candidates/<candidate_id>/send-email")
@require_roles(ADMIN_ONLY)
def candidates_send_email(candidate_id: str):
    req = SendEmailRequest.from_body(require_json())
    cfg = current_app.config["CFG"]
    return jsonify(orchestrator.send_candidate_email(candidate_id, req, current_actor(), cfg=cfg))


@candidates_bp.get("/candidates/<candidate_id>/audit-logs")
@require_roles(ADMIN_ONLY)
def audit_logs_list(candidate_id: str):
    with SessionLocal() as db:
        find_candidate(db, candidate_id=candidate_id)
        items = [audit.serialize_entry(e) for e in audit.list_entries(db, candidate_id)]
    return jsonify({"success": True, "data": {"items": items, "total": len(items)}})


@candidates_bp.post("/candidates/<candidate_id>/audit-logs")
@require_roles(ADMIN_ONLY)
def audit_logs_create(candidate_id: str):
    cfg = current_app.config["CFG"]
    req = AuditEntryCreateRequest.from_body(require_json(), app_timezone=cfg.APP_TIMEZONE)
    with unit_of_work() as db:
        find_candidate(db, candidate_id=candidate_id)
        entry = audit.create_manual_entry(db, candidate_id=candidate_id, request=req, actor_label=current_actor().label)
        data = audit.serialize_entry(entry)
    return jsonify({"success": True, "data": data}), 201


@candidates_bp.patch("/candidates/<candidate_id>/audit-logs/<audit_id>")
@require_roles(ADMIN_ONLY)
def audit_logs_patch(candidate_id: str, audit_id: str):
    cfg = current_app.config["CFG"]
    req = AuditEntryPatchRequest.from_body(require_json(), app_timezone=cfg.APP_TIMEZONE)
    with unit_of_work() as db:
        entry = audit.patch_entry(db, candidate_id=candidate_id, audit_id=audit_id, request=req)
        data = audit.serialize_entry(entry)
    return jsonify({"success": True, "data": data})


@candidates_bp.delete("/candidates/<candidate_id>/audit-logs/<audit_id>")
@require_roles(ADMIN_ONLY)
def audit_logs_delete(candidate_id: str, audit_id: str):
    with unit_of_work() as db:
        audit.delete_entry(db, candidate_id=candidate_id, audit_id=audit_id)
    return jsonify({"success": True})
