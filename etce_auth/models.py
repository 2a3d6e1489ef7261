"""
ETCE portal SQLAlchemy models

- Accounts (one per email + role)
- Verification challenges (pending email OTPs)
- Jobs (background task queue)
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, JSON, func, UniqueConstraint, Index
)
from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, enum.Enum):
    STUDENT = "student"
    FACULTY = "faculty"

    @property
    def label(self) -> str:
        return self.value.capitalize()


# =====================================================
# ACCOUNT MODEL
# =====================================================

class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)

    name = Column(String(128), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False)  # student / faculty

    verified = Column(Boolean, default=False, nullable=False)
    verified_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(),
                        onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("email", "role", name="uq_accounts_email_role"),
    )

    def __repr__(self):
        return f"<Account(id={self.id}, email={self.email}, role={self.role}, verified={self.verified})>"


# =====================================================
# VERIFICATION CHALLENGE MODEL
# =====================================================

class VerificationChallenge(Base):
    __tablename__ = "verification_challenges"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False)

    otp_hash = Column(String(64), nullable=False)      # SHA256 hashed
    expires_at = Column(DateTime(timezone=True), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("email", "role", name="uq_verification_challenges_email_role"),
        Index("ix_verification_challenges_expires_at", "expires_at"),
    )

    def __repr__(self):
        return f"<VerificationChallenge(email={self.email}, role={self.role}, expires_at={self.expires_at})>"


# =====================================================
# JOB QUEUE MODEL
# =====================================================

class JobStatus(str, enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    DEAD = "dead"  # retries exhausted, kept for operators


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    task_name = Column(String(128), nullable=False, index=True)
    arguments = Column(JSON, nullable=False, default=dict)

    status = Column(String(32), default=JobStatus.PENDING.value, nullable=False, index=True)

    scheduled_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    error = Column(String, nullable=True)
    retry_count = Column(Integer, default=0, nullable=False)
    max_retries = Column(Integer, default=3, nullable=False)

    def __repr__(self):
        return f"<Job(id={self.id}, task={self.task_name}, status={self.status})>"
