from __future__ import annotations

import html
import logging
import threading
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import requests

from rise_hrm.db import SessionLocal
from rise_hrm.models import EmailLog
from rise_hrm.utils.datetime import iso_utc_now, parse_datetime_maybe
from rise_hrm.utils.ids import new_id

log = logging.getLogger(__name__)

TEMPLATE_REACH_OUT = "REACH_OUT"
TEMPLATE_INTERVIEW_INVITE = "INTERVIEW_INVITE"
TEMPLATE_OFFER = "OFFER"
TEMPLATE_REJECTION = "REJECTION"

_LAYOUT = """<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background-color: #E4893D; color: white; padding: 20px; text-align: center;"><h1>Rise and Shine</h1></div>
    <div style="padding: 20px; background-color: #f9f9f9;">
      <p>Hello {first_name},</p>
      {content}
      <p>Best regards,<br>The Rise and Shine Team</p>
    </div>
    <div style="padding: 20px; text-align: center; font-size: 12px; color: #666;"><p>Rise and Shine HRM</p></div>
  </div>
</body>
</html>
"""


def _render(first_name: str, paragraphs: list[str]) -> str:
    content = "\n      ".join(paragraphs)
    return _LAYOUT.format(first_name=html.escape(first_name or "there"), content=content)


def reach_out_email(*, first_name: str) -> tuple[str, str]:
    subject = "Opportunity at Rise and Shine - We'd Love to Connect!"
    body = _render(
        first_name,
        [
            "<p>We came across your application and would love to talk with you about joining the "
            "Rise and Shine team as a Registered Behavior Technician.</p>",
            "<p>Reply to this email and we will find a time to connect.</p>",
        ],
    )
    return subject, body


def interview_invite_email(
    *,
    first_name: str,
    scheduled_at: str,
    duration_minutes: int,
    interviewer_name: str,
    meeting_url: str,
    display_tz: str,
) -> tuple[str, str]:
    subject = "Interview Invitation - Rise and Shine"
    when = parse_datetime_maybe(scheduled_at)
    when_s = _format_when(when, display_tz) if when else scheduled_at
    paragraphs = [
        "<p>Thank you for your interest in joining the Rise and Shine team. We would like to invite you for an interview.</p>",
        "<p><strong>Interview Details:</strong></p>",
        "<ul>"
        f"<li><strong>Date &amp; Time:</strong> {html.escape(when_s)}</li>"
        f"<li><strong>Duration:</strong> {int(duration_minutes)} minutes</li>"
        f"<li><strong>Interviewer:</strong> {html.escape(interviewer_name)}</li>"
        "</ul>",
    ]
    if meeting_url:
        paragraphs.append(f'<p><a href="{html.escape(meeting_url, quote=True)}">Join Meeting</a></p>')
    paragraphs.append("<p>If you need to reschedule, please contact us as soon as possible.</p>")
    return subject, _render(first_name, paragraphs)


def offer_email(*, first_name: str) -> tuple[str, str]:
    subject = "Welcome to Rise and Shine - You're Hired!"
    body = _render(
        first_name,
        [
            "<p>Congratulations! We are delighted to offer you a position as a Registered Behavior Technician with Rise and Shine.</p>",
            "<p>Sign in to your account to continue with onboarding.</p>",
        ],
    )
    return subject, body


def rejection_email(*, first_name: str) -> tuple[str, str]:
    subject = "Update on Your Application - Rise and Shine"
    body = _render(
        first_name,
        [
            "<p>Thank you for taking the time to interview with us at Rise and Shine. We appreciate your interest in joining our team.</p>",
            "<p>After careful consideration, we have decided to move forward with other candidates at this time. "
            "We wish you the best in your career search.</p>",
        ],
    )
    return subject, body


def _format_when(dt: datetime, display_tz: str) -> str:
    try:
        local = dt.astimezone(ZoneInfo(display_tz))
    except Exception:
        local = dt
    return local.strftime("%A, %B %d, %Y at %I:%M %p %Z")


def _record(
    *,
    candidate_id: str,
    template_type: str,
    to_email: str,
    subject: str,
    body: str,
    status: str,
    error: str = "",
    email_id: str = "",
) -> str:
    """Insert the log row, or move an existing (queued) row to its final status. Returns the row id."""
    with SessionLocal() as db:
        row = db.get(EmailLog, email_id) if email_id else None
        if row is None:
            row = EmailLog(
                emailId=email_id or new_id("EML"),
                candidateId=str(candidate_id or ""),
                templateType=template_type,
                toEmail=to_email,
                subject=subject,
                body=body,
                createdAt=iso_utc_now(),
            )
            db.add(row)
        row.status = status
        row.error = str(error or "")[:2000]
        db.commit()
        return row.emailId


def send_email(
    cfg,
    *,
    candidate_id: str,
    template_type: str,
    to_email: str,
    subject: str,
    body: str,
    email_id: str = "",
) -> bool:
    """
    Deliver one message through the HTTP email API and record it in `email_logs`.

    Without EMAIL_API_KEY the message is only logged (development mode).
    `email_id` names a row already written as `queued`; it is updated in place.
    Returns whether delivery succeeded; never raises for delivery problems.
    """
    to_email = str(to_email or "").strip()
    if not to_email:
        log.info("email skipped: candidate=%s template=%s has no address", candidate_id, template_type)
        return False

    record = dict(
        candidate_id=candidate_id,
        template_type=template_type,
        to_email=to_email,
        subject=subject,
        body=body,
        email_id=email_id,
    )

    if not cfg.EMAIL_API_KEY:
        log.info("[DEV MODE] email to=%s template=%s subject=%s", to_email, template_type, subject)
        _record(status="sent", **record)
        return True

    payload: dict[str, Any] = {"from": cfg.EMAIL_FROM, "to": [to_email], "subject": subject, "html": body}
    headers = {"Authorization": f"Bearer {cfg.EMAIL_API_KEY}"}
    error = ""
    try:
        resp = requests.post(cfg.EMAIL_API_URL, json=payload, headers=headers, timeout=cfg.EMAIL_TIMEOUT_SECONDS)
        if resp.status_code >= 400:
            error = f"HTTP {resp.status_code}: {str(resp.text or '').strip()[:500]}"
    except requests.RequestException as e:
        error = str(e) or e.__class__.__name__

    if error:
        log.warning("email delivery failed: candidate=%s template=%s error=%s", candidate_id, template_type, error)
    _record(status="failed" if error else "sent", error=error, **record)
    return not error


def dispatch_email(cfg, **kwargs: Any) -> None:
    """
    Best-effort send. Runs on a daemon thread unless EMAIL_SEND_ASYNC is off.

    Threaded sends are logged as `queued` first. A worker restart mid-send
    leaves that row `queued` rather than losing the message without a trace.
    """

    def _run() -> None:
        try:
            send_email(cfg, **kwargs)
        except Exception:
            log.exception("email dispatch failed: candidate=%s template=%s", kwargs.get("candidate_id"), kwargs.get("template_type"))

    if not cfg.EMAIL_SEND_ASYNC:
        _run()
        return

    if str(kwargs.get("to_email") or "").strip():
        kwargs["email_id"] = _record(
            candidate_id=kwargs.get("candidate_id", ""),
            template_type=kwargs.get("template_type", ""),
            to_email=str(kwargs["to_email"]).strip(),
            subject=kwargs.get("subject", ""),
            body=kwargs.get("body", ""),
            status="queued",
        )
    threading.Thread(target=_run, name="email-dispatch", daemon=True).start()
