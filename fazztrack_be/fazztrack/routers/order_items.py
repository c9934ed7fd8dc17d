from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from typing import List

from fazztrack.models.user import User, get_db
from fazztrack.schemas.order import OrderItemIn, OrderItemOut, OrderItemUpdate
from fazztrack.services import order_lifecycle, order_service
from fazztrack.services.authorization import authorize
from fazztrack.utils.security import get_current_user


router = APIRouter()


@router.get("/orders/{order_id}/items", response_model=List[OrderItemOut])
def list_items(order_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    order = order_service.get_order(db, order_id)
    authorize(current_user, "order.view", order)
    return [OrderItemOut.model_validate(i) for i in order.items]


@router.post("/orders/{order_id}/items", response_model=OrderItemOut, status_code=201)
def add_item(
    order_id: int,
    payload: OrderItemIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_lifecycle.lock_order(db, order_id)
    authorize(current_user, "order.update", order)
    item = order_service.add_item(db, order, payload.product_id, payload.quantity, payload.price)
    db.commit()
    db.refresh(item)
    return OrderItemOut.model_validate(item)


@router.put("/items/{id}", response_model=OrderItemOut)
def update_item(
    id: int,
    payload: OrderItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = order_service.lock_item(db, id)
    authorize(current_user, "order.update", item.order)
    order_service.update_item(db, item, payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(item)
    return OrderItemOut.model_validate(item)


@router.delete("/items/{id}", status_code=204)
def delete_item(id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    item = order_service.lock_item(db, id)
    authorize(current_user, "order.update", item.order)
    order_service.delete_item(db, item)
    db.commit()
    return Response(status_code=204)
