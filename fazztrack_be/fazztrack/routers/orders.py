from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from fazztrack.models.user import User, get_db
from fazztrack.models.order import Order
from fazztrack.schemas.order import (
    OrderCreate,
    OrderUpdate,
    OrderOut,
    OrderStatusUpdate,
    OrderDetailOut,
)
from fazztrack.services import order_lifecycle, order_service
from fazztrack.services.authorization import authorize
from fazztrack.utils.security import get_current_user


router = APIRouter()


def map_order_to_out(order: Order) -> OrderOut:
    return OrderOut.model_validate(order)


# Create order with items and payments in one transaction
@router.post("/", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "order.create")
    order = order_service.create_order(db, current_user, payload)
    db.commit()
    db.refresh(order)
    return map_order_to_out(order)


@router.get("/{id}", response_model=OrderOut)
def get_order(
    id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_service.get_order(db, id)
    authorize(current_user, "order.view", order)
    return map_order_to_out(order)


@router.get("/{id}/details", response_model=OrderDetailOut)
def get_order_details(
    id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_service.get_order(db, id)
    authorize(current_user, "order.view", order)
    detail = order_service.get_order_detail(db, order)
    return OrderDetailOut(
        order=map_order_to_out(order),
        financials=detail["financials"],
        job_progress=detail["job_progress"],
    )


@router.put("/{id}", response_model=OrderOut)
def update_order(
    id: int,
    payload: OrderUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_lifecycle.lock_order(db, id)
    authorize(current_user, "order.update", order)
    order_service.update_order(db, order, payload)
    db.commit()
    db.refresh(order)
    return map_order_to_out(order)


# Administrative override: any declared status, no sequencing checks
@router.post("/{id}/status", response_model=OrderOut)
def update_order_status(
    id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_lifecycle.lock_order(db, id)
    authorize(current_user, "order.update_status", order)
    order_lifecycle.override_status(db, order, payload.status)
    db.commit()
    db.refresh(order)
    return map_order_to_out(order)


@router.post("/{id}/approve", response_model=OrderOut)
def approve_order(
    id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_lifecycle.lock_order(db, id)
    authorize(current_user, "order.approve", order)
    order_lifecycle.approve_order(db, order)
    db.commit()
    db.refresh(order)
    return map_order_to_out(order)


@router.delete("/{id}", status_code=204)
def delete_order(
    id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_lifecycle.lock_order(db, id)
    authorize(current_user, "order.delete", order)
    order_lifecycle.delete_order(db, order)
    db.commit()
    return Response(status_code=204)
