from pydantic import BaseModel, ConfigDict
from typing import Optional, Literal
from datetime import datetime


Phase = Literal["design", "print", "press", "cut", "sew", "qc", "iron_packing"]
JobStatus = Literal["pending", "in_progress", "completed"]


class JobCreate(BaseModel):
    order_id: int
    phase: Phase
    assigned_to: int
    status: Optional[JobStatus] = None


class JobUpdate(BaseModel):
    assigned_to: Optional[int] = None
    status: Optional[JobStatus] = None


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    job_id: int
    order_id: int
    phase: Phase
    status: JobStatus
    assigned_to: int
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    qr_code_hash: str


class JobCreatedOut(BaseModel):
    success: bool = True
    message: str
    job: JobOut
    qr_code_url: str


class JobActionOut(BaseModel):
    message: str
    job: JobOut


class ScanActions(BaseModel):
    can_start: bool
    can_complete: bool


class JobScanOut(BaseModel):
    message: str
    job: JobOut
    actions: ScanActions
