import hashlib
import hmac
import secrets
from datetime import datetime, timedelta

from sqlalchemy import delete
from sqlalchemy.orm import Session

from etce_auth.config import settings
from etce_auth.logging_config import get_logger
from etce_auth.models import VerificationChallenge, utcnow

logger = get_logger(__name__)


# ===============================
# OTP GENERATION
# ===============================
def generate_otp(length: int = None) -> str:
    """Generate a numeric OTP, uniform over [10**(n-1), 10**n - 1] (100000-999999 by default)."""
    length = length or settings.OTP_LENGTH
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def hash_otp(otp: str) -> str:
    return hashlib.sha256(otp.encode("utf-8")).hexdigest()


def otp_expires_at(now: datetime = None) -> datetime:
    return (now or utcnow()) + timedelta(minutes=settings.OTP_EXPIRY_MINUTES)


# ===============================
# ISSUE
# ===============================
def issue_challenge(db: Session, email: str, role: str, otp: str, now: datetime = None) -> VerificationChallenge:
    """
    Stage a challenge for (email, role) on the session.

    The caller owns the transaction so the challenge commits together with
    the account it belongs to.
    """
    challenge = VerificationChallenge(
        email=email,
        role=role,
        otp_hash=hash_otp(otp),
        expires_at=otp_expires_at(now),
    )
    db.add(challenge)
    return challenge


# ===============================
# CONSUME
# ===============================
def consume_challenge(db: Session, email: str, role: str, otp: str, now: datetime = None) -> bool:
    """
    Delete the live challenge for (email, role) if ``otp`` matches it.

    Returns False for a wrong code, an expired code or a missing challenge.
    The delete is conditional on the row still being there, so concurrent
    callers with the same code cannot both succeed. Does not commit.
    """
    now = now or utcnow()

    challenge = (
        db.query(VerificationChallenge)
        .filter(
            VerificationChallenge.email == email,
            VerificationChallenge.role == role,
            VerificationChallenge.expires_at > now,
        )
        .first()
    )
    if challenge is None:
        return False

    if not hmac.compare_digest(challenge.otp_hash, hash_otp(otp)):
        return False

    result = db.execute(
        delete(VerificationChallenge)
        .where(
            VerificationChallenge.id == challenge.id,
            VerificationChallenge.otp_hash == challenge.otp_hash,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.info("otp_challenge_already_consumed", email=email, role=role)
        return False

    db.expunge(challenge)
    return True


# ===============================
# EVICTION
# ===============================
def purge_expired_challenges(db: Session, now: datetime = None) -> int:
    """Remove challenges past their expiry. Returns how many were deleted."""
    now = now or utcnow()
    result = db.execute(
        delete(VerificationChallenge)
        .where(VerificationChallenge.expires_at <= now)
        .execution_options(synchronize_session=False)
    )
    db.commit()

    if result.rowcount:
        logger.info("expired_challenges_purged", count=result.rowcount)
    return result.rowcount
