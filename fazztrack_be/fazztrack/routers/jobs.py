from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from fazztrack.models.user import User, get_db
from fazztrack.core.exceptions import NotFound
from fazztrack.schemas.job import JobActionOut, JobCreate, JobCreatedOut, JobOut, JobScanOut, JobUpdate
from fazztrack.services import job_scheduler, order_lifecycle
from fazztrack.services.authorization import authorize
from fazztrack.utils.security import get_current_user


router = APIRouter()


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User", user_id)
    return user


@router.post("/", response_model=JobCreatedOut, status_code=201)
def create_job(
    payload: JobCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "job.create")
    order = order_lifecycle.lock_order(db, payload.order_id)
    assignee = _get_user(db, payload.assigned_to)
    job = job_scheduler.create_job(db, order, payload.phase, assignee, payload.status)
    db.commit()
    db.refresh(job)
    return JobCreatedOut(
        message="Job created successfully",
        job=JobOut.model_validate(job),
        qr_code_url=job_scheduler.scan_url(job),
    )


# Declared before /{id} so scan tokens never hit the id route
@router.get("/qr/{token}", response_model=JobScanOut)
def scan_job(token: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    job, actions = job_scheduler.access_by_scan_token(db, token)
    authorize(current_user, "job.scan", job)
    return JobScanOut(message="Job found", job=JobOut.model_validate(job), actions=actions)


@router.get("/{id}", response_model=JobOut)
def get_job(id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    job = job_scheduler.get_job(db, id)
    authorize(current_user, "job.view", job)
    return JobOut.model_validate(job)


@router.put("/{id}", response_model=JobOut)
def update_job(
    id: int,
    payload: JobUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    job = job_scheduler.lock_job(db, id)
    authorize(current_user, "job.update", job)
    assignee = _get_user(db, payload.assigned_to) if payload.assigned_to is not None else None
    job_scheduler.update_job(db, job, assignee=assignee, status=payload.status)
    db.commit()
    db.refresh(job)
    return JobOut.model_validate(job)


@router.post("/{id}/start", response_model=JobActionOut)
def start_job(id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    job = job_scheduler.lock_job(db, id)
    authorize(current_user, "job.start", job)
    job_scheduler.start_job(db, job)
    db.commit()
    db.refresh(job)
    return JobActionOut(message="Job started", job=JobOut.model_validate(job))


@router.post("/{id}/complete", response_model=JobActionOut)
def complete_job(id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    job = job_scheduler.lock_job(db, id)
    authorize(current_user, "job.complete", job)
    job_scheduler.complete_job(db, job)
    db.commit()
    db.refresh(job)
    return JobActionOut(message="Job completed", job=JobOut.model_validate(job))


@router.delete("/{id}", status_code=204)
def delete_job(id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    job = job_scheduler.lock_job(db, id)
    authorize(current_user, "job.delete", job)
    job_scheduler.delete_job(db, job)
    db.commit()
    return Response(status_code=204)
