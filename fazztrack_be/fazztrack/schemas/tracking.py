from pydantic import BaseModel, Field
from typing import List, Optional


class TrackingRequest(BaseModel):
    tracking_id: str = Field(min_length=1)


class PhaseProgress(BaseModel):
    phase: str
    phase_name: str
    status: str  # job status, or not_started when the phase has no job yet
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class TrackingOut(BaseModel):
    success: bool = True
    order_id: int
    tracking_id: str
    job_name: str
    status: str
    created_at: Optional[str] = None
    delivery_method: str
    estimated_delivery: Optional[str] = None
    delivery_tracking_id: Optional[str] = None
    job_progress: List[PhaseProgress]
    progress_percentage: int
