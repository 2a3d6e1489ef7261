import time
from typing import Optional, Tuple

from etce_auth.config import settings
from etce_auth.db import SessionLocal, init_db
from etce_auth.logging_config import get_logger
from etce_auth.services.otp_service import purge_expired_challenges
from etce_auth.services.task_queue import run_pending_jobs

# Ensure tasks are registered by importing modules
from etce_auth.services import email_service  # noqa: F401

logger = get_logger("worker")


def purge_challenges():
    db = SessionLocal()
    try:
        return purge_expired_challenges(db)
    finally:
        db.close()


def tick(last_purge: Optional[float]) -> Tuple[float, int]:
    """
    One pass of the worker loop: purge expired challenges when the purge
    interval has elapsed (or nothing was purged yet), then run pending jobs.

    Returns the new ``last_purge`` mark and the number of jobs processed.
    """
    now = time.monotonic()
    if last_purge is None or now - last_purge >= settings.CHALLENGE_PURGE_INTERVAL_SECONDS:
        purge_challenges()
        last_purge = now

    # Run up to 10 jobs at a time
    return last_purge, run_pending_jobs(limit=10)


def start_worker():
    logger.info("worker_starting", app=settings.APP_NAME)
    # Ensure tables exist
    init_db()

    last_purge = None
    while True:
        try:
            last_purge, count = tick(last_purge)
            if count == 0:
                time.sleep(2)  # Sleep if no jobs
        except KeyboardInterrupt:
            logger.info("worker_stopping")
            break
        except Exception as e:
            logger.error("worker_loop_failed", error=str(e), exc_info=True)
            time.sleep(5)


if __name__ == "__main__":
    start_worker()
