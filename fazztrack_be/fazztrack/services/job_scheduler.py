"""Production jobs: one per (order, phase), run in a fixed phase order."""
import logging
import secrets
from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from fazztrack.config import get_settings
from fazztrack.core.exceptions import NotFound, PreconditionFailed, ValidationFailed
from fazztrack.models.job import Job
from fazztrack.models.order import Order
from fazztrack.models.user import User
from fazztrack.services.order_lifecycle import (
    WORKABLE_STATUSES,
    LifecycleEvent,
    ensure_order_status,
    lock_order_child,
    promote_if_eligible,
)

logger = logging.getLogger(__name__)

PHASES = ("design", "print", "press", "cut", "sew", "qc", "iron_packing")

PHASE_ROLES = {
    "design": "Designer",
    "print": "Printer",
    "press": "Press",
    "cut": "Cutter",
    "sew": "Sewer",
    "qc": "QC",
    "iron_packing": "Packer",
}

PHASE_NAMES = {
    "design": "Design",
    "print": "Printing",
    "press": "Heat Press",
    "cut": "Cutting",
    "sew": "Sewing",
    "qc": "Quality Control",
    "iron_packing": "Ironing & Packing",
}

JOB_STATUSES = ("pending", "in_progress", "completed")

DESIGN_PHASE = PHASES[0]
LAST_PHASE = PHASES[-1]


def phase_index(phase: str) -> int:
    try:
        return PHASES.index(phase)
    except ValueError:
        raise ValidationFailed("phase", f"Unknown phase '{phase}'")


def previous_phase(phase: str) -> Optional[str]:
    """The phase that must be completed before ``phase`` can start; None for the first."""
    idx = phase_index(phase)
    return PHASES[idx - 1] if idx > 0 else None


def _job_for_phase(order: Order, phase: str) -> Optional[Job]:
    return next((j for j in order.jobs if j.phase == phase), None)


def _check_assignee(phase: str, user: User) -> None:
    required = PHASE_ROLES[phase]
    if user.production_role != required:
        raise PreconditionFailed(
            f"The assigned user must have the '{required}' role",
            context={"phase": phase, "user_id": user.id, "role": user.production_role},
        )


def _new_scan_token(db: Session) -> str:
    while True:
        token = secrets.token_hex(16)
        if not db.query(Job.job_id).filter(Job.qr_code_hash == token).first():
            return token


def scan_url(job: Job) -> str:
    return f"{get_settings().PUBLIC_BASE_URL}/api/jobs/qr/{job.qr_code_hash}"


def get_job(db: Session, job_id: int) -> Job:
    job = db.query(Job).filter(Job.job_id == job_id).first()
    if not job:
        raise NotFound("Job", job_id)
    return job


def lock_job(db: Session, job_id: int) -> Job:
    """Load a job after locking its order, so phase checks see a stable view."""
    return lock_order_child(db, Job, Job.job_id, job_id, "Job")


def create_job(db: Session, order: Order, phase: str, assignee: User, status: Optional[str] = None) -> Job:
    phase_index(phase)
    status = status or "pending"
    if status not in JOB_STATUSES:
        raise ValidationFailed("status", f"Unknown job status '{status}'")

    ensure_order_status(order, WORKABLE_STATUSES, "Cannot create jobs for orders that are not approved or in progress")

    if phase == DESIGN_PHASE:
        if _job_for_phase(order, DESIGN_PHASE) is not None:
            raise PreconditionFailed("This order already has a design job", context={"order_id": order.order_id})
    else:
        design_job = _job_for_phase(order, DESIGN_PHASE)
        if design_job is None or design_job.status != "completed":
            raise PreconditionFailed(
                "Cannot create production jobs until design is completed", context={"order_id": order.order_id}
            )
        if _job_for_phase(order, phase) is not None:
            raise PreconditionFailed(
                f"This order already has a {phase} job", context={"order_id": order.order_id, "phase": phase}
            )

    _check_assignee(phase, assignee)

    job = Job(
        phase=phase,
        status=status,
        assigned_to=assignee.id,
        qr_code_hash=_new_scan_token(db),
    )
    order.jobs.append(job)
    db.flush()
    if status != "pending":
        logger.warning("Job %s created directly in status %s", job.job_id, status)
    logger.info("Created %s job %s for order %s (assignee %s)", phase, job.job_id, order.order_id, assignee.id)

    promote_if_eligible(db, order, LifecycleEvent.WORK_STARTED)
    return job


def start_job(db: Session, job: Job, now: Optional[datetime] = None) -> Job:
    if job.status != "pending":
        raise PreconditionFailed("Only pending jobs can be started", context={"job_id": job.job_id})

    prev = previous_phase(job.phase)
    if prev is not None:
        prev_job = _job_for_phase(job.order, prev)
        if prev_job is None or prev_job.status != "completed":
            raise PreconditionFailed(
                f"Cannot start this job until the {prev} phase is completed",
                context={"job_id": job.job_id, "phase": job.phase},
            )

    job.status = "in_progress"
    job.start_time = now or datetime.utcnow()
    logger.info("Job %s (%s) started on order %s", job.job_id, job.phase, job.order_id)

    promote_if_eligible(db, job.order, LifecycleEvent.WORK_STARTED)
    return job


def duration_minutes(start: Optional[datetime], end: datetime) -> Optional[int]:
    if start is None:
        return None
    return max(0, int((end - start).total_seconds() // 60))


def complete_job(db: Session, job: Job, now: Optional[datetime] = None) -> Job:
    if job.status != "in_progress":
        raise PreconditionFailed("Only in-progress jobs can be completed", context={"job_id": job.job_id})

    job.status = "completed"
    job.end_time = now or datetime.utcnow()
    job.duration = duration_minutes(job.start_time, job.end_time)
    logger.info("Job %s (%s) completed in %s min", job.job_id, job.phase, job.duration)

    if job.phase == LAST_PHASE:
        promote_if_eligible(db, job.order, LifecycleEvent.PRODUCTION_FINISHED)
    return job


def update_job(db: Session, job: Job, assignee: Optional[User] = None, status: Optional[str] = None) -> Job:
    """Reassign a job and/or overwrite its status.

    A status given here is an administrative override: phase ordering is not
    re-checked and no order promotion fires.
    """
    if assignee is not None:
        _check_assignee(job.phase, assignee)
        job.assigned_to = assignee.id
    if status is not None:
        if status not in JOB_STATUSES:
            raise ValidationFailed("status", f"Unknown job status '{status}'")
        if status != job.status:
            logger.warning("Job %s status overridden %s -> %s", job.job_id, job.status, status)
        job.status = status
    return job


def delete_job(db: Session, job: Job) -> None:
    if job.status != "pending":
        raise PreconditionFailed(
            "Cannot delete jobs that are in progress or completed", context={"job_id": job.job_id}
        )
    logger.info("Deleting job %s (%s) of order %s", job.job_id, job.phase, job.order_id)
    job.order.jobs.remove(job)
    db.flush()


def access_by_scan_token(db: Session, token: str) -> Tuple[Job, Dict[str, bool]]:
    job = db.query(Job).filter(Job.qr_code_hash == token).first()
    if not job:
        raise NotFound("Job", token)
    return job, {
        "can_start": job.status == "pending",
        "can_complete": job.status == "in_progress",
    }


def job_progress(jobs: Iterable[Job]) -> Dict[str, int]:
    jobs = list(jobs)
    return {
        "total": len(jobs),
        "completed": sum(1 for j in jobs if j.status == "completed"),
        "in_progress": sum(1 for j in jobs if j.status == "in_progress"),
        "pending": sum(1 for j in jobs if j.status == "pending"),
    }
