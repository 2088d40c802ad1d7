from __future__ import annotations

from io import BytesIO

from flask import Blueprint, current_app, jsonify, request, send_file

from rise_hrm.db import SessionLocal
from rise_hrm.reports.excel import build_workbook_bytes
from rise_hrm.reports.queries import audit_log_rows, summary_report
from rise_hrm.utils.auth import require_roles
from rise_hrm.utils.validators import parse_date_range

reports_bp = Blueprint("reports", __name__)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@reports_bp.get("/summary")
@require_roles(["ADMIN"])
def pipeline_summary():
    start_dt, end_dt, from_s, to_s = parse_date_range(request.args, timezone_name=current_app.config["CFG"].APP_TIMEZONE)
    with SessionLocal() as db:
        data = summary_report(db, start_dt, end_dt)
    return jsonify({"success": True, "data": {"from": from_s, "to": to_s, **data}})


@reports_bp.get("/export.xlsx")
@require_roles(["ADMIN"])
def pipeline_export():
    """Summary counts plus every audit entry in the range, one workbook."""
    start_dt, end_dt, from_s, to_s = parse_date_range(request.args, timezone_name=current_app.config["CFG"].APP_TIMEZONE)
    with SessionLocal() as db:
        summary = summary_report(db, start_dt, end_dt)
        rows = audit_log_rows(db, start_dt, end_dt)

    payload = build_workbook_bytes(
        from_s=from_s,
        to_s=to_s,
        timezone_display=current_app.config["CFG"].APP_TIMEZONE,
        summary=summary,
        audit_rows=rows,
    )
    return send_file(
        BytesIO(payload),
        as_attachment=True,
        download_name=f"rise_hrm_pipeline_{from_s}_{to_s}.xlsx",
        mimetype=XLSX_MIMETYPE,
    )
