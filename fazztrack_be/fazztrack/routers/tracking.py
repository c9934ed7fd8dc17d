from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fazztrack.models.user import get_db
from fazztrack.schemas.tracking import TrackingOut, TrackingRequest
from fazztrack.services import order_service


# Public, no bearer token
router = APIRouter()


@router.post("", response_model=TrackingOut)
def track_order(payload: TrackingRequest, db: Session = Depends(get_db)):
    return order_service.track_by_code(db, payload.tracking_id)


@router.get("/order/{id}", response_model=TrackingOut)
def track_order_by_id(id: int, db: Session = Depends(get_db)):
    return order_service.track_by_id(db, id)
