import traceback
from datetime import timedelta
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session, sessionmaker

from etce_auth.config import settings
from etce_auth.db import SessionLocal
from etce_auth.logging_config import get_logger
from etce_auth.models import Job, JobStatus, utcnow

logger = get_logger(__name__)

# Registry of available tasks
TASK_REGISTRY: Dict[str, Callable] = {}


def register_task(name):
    """Decorator to register a function as a task."""
    def decorator(func):
        TASK_REGISTRY[name] = func
        return func
    return decorator


def enqueue_job(task_name: str, args: dict = None, delay_minutes: int = 0, db: Session = None) -> Optional[int]:
    """
    Add a job to the queue. Returns the job id, or None if it could not be stored.
    """
    if args is None:
        args = {}

    scheduled_at = utcnow() + timedelta(minutes=delay_minutes)

    job = Job(
        task_name=task_name,
        arguments=args,
        scheduled_at=scheduled_at,
        status=JobStatus.PENDING.value,
        max_retries=settings.JOB_MAX_RETRIES,
    )

    # Use provided session or create new one
    close_db = False
    if not db:
        db = SessionLocal()
        close_db = True

    try:
        db.add(job)
        db.commit()
        db.refresh(job)
        logger.info("job_enqueued", job_id=job.id, task=task_name)
        return job.id
    except Exception as e:
        logger.error("job_enqueue_failed", task=task_name, error=str(e))
        db.rollback()
        return None
    finally:
        if close_db:
            db.close()


def run_pending_jobs(limit: int = 10, session_factory: sessionmaker = None) -> int:
    """
    Fetch and run pending jobs that are due.
    Called by the background worker.
    """
    session_factory = session_factory or SessionLocal
    db = session_factory()
    try:
        now = utcnow()

        # Single worker process; a multi-worker setup would need SELECT ... FOR UPDATE SKIP LOCKED
        jobs = db.query(Job).filter(
            Job.status == JobStatus.PENDING.value,
            Job.scheduled_at <= now
        ).order_by(Job.scheduled_at.asc()).limit(limit).all()

        if not jobs:
            return 0

        logger.info("pending_jobs_found", count=len(jobs))

        for job in jobs:
            process_job(db, job)

        return len(jobs)
    finally:
        db.close()


def process_job(db: Session, job: Job):
    """
    Execute a single job, rescheduling it with linear backoff on failure
    and moving it to the dead state once retries are exhausted.
    """
    log = logger.bind(job_id=job.id, task=job.task_name)
    log.info("job_started", retry_count=job.retry_count)

    # Mark as running
    job.status = JobStatus.RUNNING.value
    job.started_at = utcnow()
    db.commit()

    try:
        task_func = TASK_REGISTRY.get(job.task_name)
        if not task_func:
            raise ValueError(f"Task {job.task_name} not registered")

        task_func(**(job.arguments or {}))

        job.status = JobStatus.COMPLETED.value
        job.completed_at = utcnow()
        job.error = None
        log.info("job_completed")

    except Exception as e:
        job.error = f"{e}\n{traceback.format_exc()}"

        if job.retry_count < job.max_retries:
            job.retry_count += 1
            job.status = JobStatus.PENDING.value
            job.scheduled_at = utcnow() + timedelta(
                minutes=settings.JOB_RETRY_BACKOFF_MINUTES * job.retry_count
            )
            log.warning("job_failed_will_retry", error=str(e), retry_count=job.retry_count)
        else:
            job.status = JobStatus.DEAD.value
            job.completed_at = utcnow()
            log.error("job_dead", error=str(e), retry_count=job.retry_count)

    db.commit()
