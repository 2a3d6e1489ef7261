# etce_auth/services/email_service.py

from html import escape
from typing import Tuple

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from etce_auth.config import settings
from etce_auth.errors import EmailDeliveryError
from etce_auth.logging_config import get_logger
from etce_auth.models import Role
from etce_auth.services.task_queue import register_task, enqueue_job

logger = get_logger(__name__)

SEND_EMAIL_TASK = "send_email"

# notification outcomes reported back to the caller of signup
QUEUED = "queued"
SENT = "sent"
FAILED = "failed"


def is_configured() -> bool:
    return bool(settings.SENDGRID_API_KEY and settings.SENDGRID_FROM_EMAIL)


@register_task(SEND_EMAIL_TASK)
def send_email_task(to_email: str, subject: str, text: str, html: str):
    """Core SendGrid wrapper (synchronous). Raises EmailDeliveryError so the queue can retry."""
    if not is_configured():
        if settings.is_development:
            # Development fallback: no provider, the mail goes to the log
            logger.info("email_development_fallback", to=to_email, subject=subject, text=text)
            return True
        raise EmailDeliveryError("Email service not configured")

    message = Mail(
        from_email=(settings.SENDGRID_FROM_EMAIL, settings.SENDGRID_FROM_NAME),
        to_emails=to_email,
        subject=subject,
        plain_text_content=text,
        html_content=html,
    )

    try:
        res = SendGridAPIClient(settings.SENDGRID_API_KEY).send(message)
    except Exception as e:
        raise EmailDeliveryError(f"SendGrid error: {e}") from e

    if not 200 <= res.status_code < 300:
        raise EmailDeliveryError(f"SendGrid rejected message with status {res.status_code}")

    logger.info("email_sent", to=to_email, status_code=res.status_code)
    return True


def build_otp_template(role: Role, name: str, email: str, otp: str) -> Tuple[str, str, str]:
    """Returns subject, plain text and HTML for the registration OTP mail."""
    minutes = settings.OTP_EXPIRY_MINUTES
    safe_name, safe_email = escape(name), escape(email)

    if role == Role.STUDENT:
        subject = "ETCE Student Registration OTP"
        html = f"""
        <h2>Welcome to ETCE Department</h2>
        <p><strong>Name:</strong> {safe_name}</p>
        <p><strong>Email:</strong> {safe_email}</p>
        <h1>{otp}</h1>
        <p>This OTP is valid for {minutes} minutes.</p>
        """
    else:
        subject = "ETCE Faculty Email Verification"
        html = f"""
        <h2>ETCE Faculty Registration</h2>
        <p><strong>Name:</strong> {safe_name}</p>
        <h1>{otp}</h1>
        <p>This OTP is valid for {minutes} minutes.</p>
        """

    text = f"Hello {name}, your ETCE verification code is {otp}. Valid for {minutes} minutes."
    return subject, text, html


async def send_email(
    to_email: str,
    subject: str,
    text: str,
    html: str,
    background: bool = True,
    db: Session = None,
) -> str:
    """
    Send an email and report what happened: QUEUED, SENT or FAILED.

    background=True hands the mail to the job queue; background=False sends
    it now in a worker thread. Failures are logged, never raised.
    """
    if not background:
        try:
            await run_in_threadpool(send_email_task, to_email, subject, text, html)
            return SENT
        except EmailDeliveryError as e:
            logger.error("email_send_failed", to=to_email, error=str(e))
            return FAILED

    job_id = await run_in_threadpool(enqueue_job, SEND_EMAIL_TASK, {
        "to_email": to_email,
        "subject": subject,
        "text": text,
        "html": html,
    }, db=db)
    if job_id is None:
        logger.error("email_enqueue_failed", to=to_email)
        return FAILED

    logger.info("email_enqueued", to=to_email, job_id=job_id)
    return QUEUED


async def send_registration_otp(role: Role, name: str, email: str, otp: str, db: Session = None) -> str:
    """Send the signup OTP mail according to EMAIL_DELIVERY."""
    subject, text, html = build_otp_template(role, name, email, otp)
    logger.info("sending_registration_otp", role=role.value, to=email)
    return await send_email(
        to_email=email,
        subject=subject,
        text=text,
        html=html,
        background=settings.EMAIL_DELIVERY == "queue",
        db=db,
    )
