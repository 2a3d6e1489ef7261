"""
Account verification flow: signup with an emailed OTP, OTP verification,
password login. Students and faculty share the flow; the role only
partitions accounts and flavours the messages.
"""
from dataclasses import dataclass
from typing import Dict

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from etce_auth.errors import (
    AccountExists,
    InvalidCredentials,
    InvalidOrExpiredOtp,
    NotVerified,
    ValidationFailed,
)
from etce_auth.logging_config import get_logger
from etce_auth.models import Account, Role, utcnow
from etce_auth.security import DUMMY_PASSWORD_HASH, hash_password, verify_password
from etce_auth.services import email_service
from etce_auth.services.otp_service import consume_challenge, generate_otp, issue_challenge

logger = get_logger(__name__)


MESSAGES: Dict[Role, Dict[str, str]] = {
    Role.STUDENT: {
        "otp_sent": "OTP sent to email",
        "otp_not_sent": "Account created but the OTP email could not be sent",
        "exists": "Student already exists",
        "verified": "Email verified successfully",
        "invalid_credentials": "Invalid student credentials",
        "not_verified": "Please verify email first",
        "login_ok": "Student login successful",
    },
    Role.FACULTY: {
        "otp_sent": "Faculty OTP sent to email",
        "otp_not_sent": "Faculty account created but the OTP email could not be sent",
        "exists": "Faculty already exists",
        "verified": "Faculty email verified successfully",
        "invalid_credentials": "Invalid faculty credentials",
        "not_verified": "Please verify your email first",
        "login_ok": "Faculty login successful",
    },
}


@dataclass
class Registration:
    role: Role
    email: str
    notification: str  # queued / sent / failed

    @property
    def message(self) -> str:
        key = "otp_not_sent" if self.notification == email_service.FAILED else "otp_sent"
        return MESSAGES[self.role][key]


def normalise_email(email: str) -> str:
    return (email or "").strip().lower()


def _require(*values: str):
    if not all(v and v.strip() for v in values):
        raise ValidationFailed()


# -------------------------------------------
# Register
# -------------------------------------------
def create_account(db: Session, role: Role, name: str, email: str, password: str, otp: str) -> Account:
    """
    Insert the unverified account and its OTP challenge in one transaction.

    The (email, role) unique constraint decides conflicts; there is no
    read-before-write. Blocking (bcrypt, DB), so async callers run it in a thread.
    """
    account = Account(
        name=name.strip(),
        email=email,
        hashed_password=hash_password(password),
        role=role.value,
        verified=False,
    )

    try:
        db.add(account)
        issue_challenge(db, email, role.value, otp)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("signup_conflict", role=role.value, email=email)
        raise AccountExists(MESSAGES[role]["exists"])

    db.refresh(account)
    logger.info("account_registered", role=role.value, email=email, account_id=account.id)
    return account


async def register(db: Session, role: Role, name: str, email: str, password: str) -> Registration:
    """
    Create an unverified account with a fresh OTP challenge and mail the code.
    Mail problems never undo the account.
    """
    _require(name, email, password)
    email = normalise_email(email)

    otp = generate_otp()
    account = await run_in_threadpool(create_account, db, role, name, email, password, otp)
    display_name = account.name

    notification = await email_service.send_registration_otp(role, display_name, email, otp, db=db)
    return Registration(role=role, email=email, notification=notification)


# -------------------------------------------
# Verify OTP
# -------------------------------------------
def verify_otp(db: Session, role: Role, email: str, otp: str) -> Account:
    """
    Mark the account verified if ``otp`` matches its live challenge.

    Wrong code, expired code and no pending signup all raise the same
    InvalidOrExpiredOtp.
    """
    email = normalise_email(email)
    otp = (otp or "").strip()
    if not email or not otp:
        raise InvalidOrExpiredOtp()

    now = utcnow()
    if not consume_challenge(db, email, role.value, otp, now=now):
        db.rollback()
        logger.info("otp_rejected", role=role.value, email=email)
        raise InvalidOrExpiredOtp()

    account = db.query(Account).filter(
        Account.email == email,
        Account.role == role.value,
    ).first()
    if account is None:
        # challenge without an account; nothing to promote
        db.rollback()
        raise InvalidOrExpiredOtp()

    account.verified = True
    account.verified_at = now
    db.commit()

    logger.info("account_verified", role=role.value, email=email, account_id=account.id)
    return account


# -------------------------------------------
# Login
# -------------------------------------------
def login(db: Session, role: Role, email: str, password: str) -> Dict[str, str]:
    """Check credentials and return the public profile ``{name, email}``."""
    _require(email, password)
    email = normalise_email(email)

    account = db.query(Account).filter(
        Account.email == email,
        Account.role == role.value,
    ).first()

    if account is None:
        # same bcrypt cost as a wrong password
        verify_password(password, DUMMY_PASSWORD_HASH)
        logger.info("login_failed", role=role.value, email=email)
        raise InvalidCredentials(MESSAGES[role]["invalid_credentials"])

    if not verify_password(password, account.hashed_password):
        logger.info("login_failed", role=role.value, email=email)
        raise InvalidCredentials(MESSAGES[role]["invalid_credentials"])

    if not account.verified:
        logger.info("login_unverified", role=role.value, email=email)
        raise NotVerified(MESSAGES[role]["not_verified"])

    logger.info("login_succeeded", role=role.value, email=email, account_id=account.id)
    return {"name": account.name, "email": account.email}
