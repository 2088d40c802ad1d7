from __future__ import annotations

from datetime import datetime, timezone
from io import BytesIO
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from rise_hrm.utils.datetime import parse_datetime_maybe, to_display_tz


def _auto_fit(ws) -> None:
    for col in ws.columns:
        col_letter = get_column_letter(col[0].column)
        max_len = max((len("" if cell.value is None else str(cell.value)) for cell in col), default=0)
        ws.column_dimensions[col_letter].width = min(max(12, max_len + 2), 60)


def _write_table(ws, headers: list[str], rows: list[list[Any]]) -> None:
    ws.append(headers)
    for r in rows:
        ws.append(r)

    ws.freeze_panes = "A2"
    ws.auto_filter.ref = ws.dimensions

    header_font = Font(bold=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center")

    _auto_fit(ws)


def _local(value: str, tz_name: str) -> str:
    dt = parse_datetime_maybe(value)
    return to_display_tz(dt, tz_name) if dt else str(value or "")


def build_workbook_bytes(
    *,
    from_s: str,
    to_s: str,
    timezone_display: str,
    summary: dict[str, Any],
    audit_rows: list[dict[str, Any]],
) -> bytes:
    wb = Workbook()
    wb.remove(wb.active)

    meta = wb.create_sheet("Meta")
    _write_table(
        meta,
        ["key", "value"],
        [
            ["from", from_s],
            ["to", to_s],
            ["timezone", timezone_display],
            ["generatedAt", to_display_tz(datetime.now(timezone.utc), timezone_display)],
            ["statusChanges", summary["statusChanges"]],
        ],
    )

    cand = wb.create_sheet("Candidates")
    _write_table(cand, ["status", "count"], [[r["status"], r["count"]] for r in summary["candidates"]["byStatus"]])

    interviews = wb.create_sheet("Interviews")
    _write_table(interviews, ["status", "count"], [[r["status"], r["count"]] for r in summary["interviews"]["byStatus"]])

    log_ws = wb.create_sheet("Audit Log")
    _write_table(
        log_ws,
        ["dateTime", "candidateId", "candidateName", "auditType", "notes", "createdBy"],
        [
            [
                _local(r["dateTime"], timezone_display),
                r["candidateId"],
                r["candidateName"],
                r["auditType"],
                r["notes"],
                r["createdBy"],
            ]
            for r in audit_rows
        ],
    )

    with BytesIO() as bio:
        wb.save(bio)
        return bio.getvalue()
