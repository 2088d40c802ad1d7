from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from rise_hrm.db import SessionLocal
from rise_hrm.lifecycle import orchestrator
from rise_hrm.lifecycle.candidate_repo import find_interview, list_interviews, serialize_interview
from rise_hrm.lifecycle.requests import ScheduleInterviewRequest
from rise_hrm.lifecycle.statuses import INTERVIEW_STATES
from rise_hrm.utils.auth import current_actor, require_roles
from rise_hrm.utils.errors import ApiError
from rise_hrm.utils.validators import optional_json, require_json

interviews_bp = Blueprint("interviews", __name__)


@interviews_bp.get("/interviews")
@require_roles(["ADMIN"])
def interviews_list():
    status = str(request.args.get("status") or "").strip().upper()
    if status and status not in INTERVIEW_STATES:
        raise ApiError("BAD_REQUEST", f"Invalid status filter: {status}", status=400)
    candidate_id = str(request.args.get("candidateId") or "").strip()

    with SessionLocal() as db:
        items = [serialize_interview(i) for i in list_interviews(db, candidate_id=candidate_id, status=status)]
    return jsonify({"success": True, "data": {"items": items, "total": len(items)}})


@interviews_bp.post("/interviews")
@require_roles(["ADMIN"])
def interviews_create():
    cfg = current_app.config["CFG"]
    req = ScheduleInterviewRequest.from_body(require_json(), app_timezone=cfg.APP_TIMEZONE)
    return jsonify(orchestrator.schedule_interview(req, current_actor(), cfg=cfg)), 201


@interviews_bp.get("/interviews/<interview_id>")
@require_roles(["ADMIN"])
def interviews_get(interview_id: str):
    with SessionLocal() as db:
        data = serialize_interview(find_interview(db, interview_id=interview_id))
    return jsonify({"success": True, "data": data})


@interviews_bp.patch("/interviews/<interview_id>/complete")
@require_roles(["ADMIN"])
def interviews_complete(interview_id: str):
    optional_json()
    cfg = current_app.config["CFG"]
    return jsonify(orchestrator.complete_interview(interview_id, current_actor(), cfg=cfg))


@interviews_bp.delete("/interviews/<interview_id>")
@require_roles(["ADMIN"])
def interviews_delete(interview_id: str):
    cfg = current_app.config["CFG"]
    return jsonify(orchestrator.delete_interview(interview_id, current_actor(), cfg=cfg))
