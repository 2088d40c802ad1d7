from __future__ import annotations

from sqlalchemy import Column, Index, Integer, String, Text

from rise_hrm.db import Base


class User(Base):
    __tablename__ = "users"

    userId = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True, index=True)
    name = Column(Text, nullable=False, default="")
    passwordHash = Column(Text, nullable=False, default="")
    role = Column(String, nullable=False, default="CANDIDATE", index=True)
    status = Column(String, nullable=False, default="ACTIVE", index=True)
    lastLoginAt = Column(Text, nullable=False, default="")
    createdAt = Column(Text, nullable=False, default="")
    updatedAt = Column(Text, nullable=False, default="")


class Candidate(Base):
    __tablename__ = "candidates"

    candidateId = Column(String, primary_key=True)
    userId = Column(String, nullable=False, default="", index=True)
    firstName = Column(Text, nullable=False, default="")
    lastName = Column(Text, nullable=False, default="")
    email = Column(String, nullable=False, default="", index=True)
    phoneNumber = Column(String, nullable=False, default="")
    addressLine1 = Column(Text, nullable=False, default="")
    addressLine2 = Column(Text, nullable=False, default="")
    city = Column(Text, nullable=False, default="")
    state = Column(String, nullable=False, default="")
    zipCode = Column(String, nullable=False, default="")
    status = Column(String, nullable=False, default="NEW", index=True)
    createdAt = Column(Text, nullable=False, default="", index=True)
    createdBy = Column(String, nullable=False, default="")
    updatedAt = Column(Text, nullable=False, default="")
    updatedBy = Column(String, nullable=False, default="")

    @property
    def fullName(self) -> str:
        return f"{self.firstName or ''} {self.lastName or ''}".strip()


class Interview(Base):
    __tablename__ = "interviews"
    __table_args__ = (Index("ix_interviews_candidate_status", "candidateId", "status"),)

    interviewId = Column(String, primary_key=True)
    candidateId = Column(String, nullable=False, index=True)
    scheduledAt = Column(Text, nullable=False, default="")
    durationMinutes = Column(Integer, nullable=False, default=15)
    interviewerName = Column(Text, nullable=False, default="")
    meetingUrl = Column(Text, nullable=False, default="")
    status = Column(String, nullable=False, default="SCHEDULED")
    reminderSentAt = Column(Text, nullable=False, default="")
    createdAt = Column(Text, nullable=False, default="")
    updatedAt = Column(Text, nullable=False, default="")


class AuditLogEntry(Base):
    __tablename__ = "audit_log_entries"
    __table_args__ = (Index("ix_audit_candidate_datetime", "candidateId", "dateTime"),)

    auditId = Column(String, primary_key=True)
    candidateId = Column(String, nullable=False, index=True)
    auditType = Column(String, nullable=False, default="", index=True)
    dateTime = Column(Text, nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    createdBy = Column(String, nullable=False, default="")
    createdAt = Column(Text, nullable=False, default="")
    updatedAt = Column(Text, nullable=False, default="")


class EmailLog(Base):
    __tablename__ = "email_logs"

    emailId = Column(String, primary_key=True)
    candidateId = Column(String, nullable=False, default="", index=True)
    templateType = Column(String, nullable=False, default="")
    toEmail = Column(String, nullable=False, default="")
    subject = Column(Text, nullable=False, default="")
    body = Column(Text, nullable=False, default="")
    status = Column(String, nullable=False, default="queued")
    error = Column(Text, nullable=False, default="")
    createdAt = Column(Text, nullable=False, default="")
