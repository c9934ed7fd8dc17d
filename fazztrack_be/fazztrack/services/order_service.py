"""Order aggregate: creation with items and payments, edits, computed views."""
import logging
import secrets
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from fazztrack.core.exceptions import NotFound, PreconditionFailed, ValidationFailed
from fazztrack.models.order import Client, Order, OrderItem, Product
from fazztrack.models.user import User
from fazztrack.schemas.order import OrderCreate, OrderUpdate
from fazztrack.services import payment_ledger
from fazztrack.services.job_scheduler import PHASE_NAMES, PHASES, job_progress
from fazztrack.services.order_lifecycle import DELIVERY_METHODS, ensure_order_status, lock_order_child

logger = logging.getLogger(__name__)

ITEM_FIELDS = ("product_id", "quantity", "price")
NON_NULL_ORDER_FIELDS = (
    "job_name",
    "delivery_method",
    "due_date_design",
    "due_date_production",
    "estimated_delivery_date",
)


def get_order(db: Session, order_id: int) -> Order:
    order = db.query(Order).filter(Order.order_id == order_id).first()
    if not order:
        raise NotFound("Order", order_id)
    return order


def _new_tracking_id(db: Session) -> str:
    while True:
        code = secrets.token_hex(5).upper()
        if not db.query(Order.order_id).filter(Order.tracking_id == code).first():
            return code


def _check_product(db: Session, product_id: int, field: str) -> None:
    if not db.query(Product.product_id).filter(Product.product_id == product_id).first():
        raise ValidationFailed(field, f"Product {product_id} does not exist")


def _check_dates(design_due: date, production_due: date, delivery: date) -> None:
    if production_due < design_due:
        raise ValidationFailed("due_date_production", "Production due date must be on or after the design due date")
    if delivery < production_due:
        raise ValidationFailed(
            "estimated_delivery_date", "Estimated delivery date must be on or after the production due date"
        )


def _check_delivery(method: str, shipping_address: Optional[str]) -> None:
    if method not in DELIVERY_METHODS:
        raise ValidationFailed("delivery_method", f"Unknown delivery method '{method}'")
    if method == "delivery" and not (shipping_address or "").strip():
        raise ValidationFailed("shipping_address", "A shipping address is required for delivery orders")


def create_order(db: Session, creator: User, payload: OrderCreate, today: Optional[date] = None) -> Order:
    """Persist an order with all of its items and payments.

    Nothing is committed here; any validation failure leaves the caller's
    transaction to be rolled back as a whole.
    """
    if not payload.items:
        raise ValidationFailed("items", "Order must contain at least one item")
    if not payload.payments:
        raise ValidationFailed("payments", "Order must contain at least one payment")
    if not db.query(Client.client_id).filter(Client.client_id == payload.client_id).first():
        raise ValidationFailed("client_id", f"Client {payload.client_id} does not exist")
    _check_delivery(payload.delivery_method, payload.shipping_address)
    if payload.due_date_design < (today or date.today()):
        raise ValidationFailed("due_date_design", "Design due date cannot be in the past")
    _check_dates(payload.due_date_design, payload.due_date_production, payload.estimated_delivery_date)

    order = Order(
        client_id=payload.client_id,
        created_by=creator.id,
        job_name=payload.job_name,
        status="pending",
        tracking_id=_new_tracking_id(db),
        delivery_method=payload.delivery_method,
        shipping_address=payload.shipping_address,
        due_date_design=payload.due_date_design,
        due_date_production=payload.due_date_production,
        estimated_delivery_date=payload.estimated_delivery_date,
        link_download=str(payload.link_download) if payload.link_download else None,
    )
    db.add(order)

    for idx, item in enumerate(payload.items):
        _check_product(db, item.product_id, f"items.{idx}.product_id")
        order.items.append(
            OrderItem(product_id=item.product_id, quantity=item.quantity, price=Decimal(str(item.price)))
        )
    db.flush()

    for idx, p in enumerate(payload.payments):
        payment_ledger.record_payment(
            db,
            order,
            type=p.type,
            amount=p.amount,
            payment_date=p.payment_date,
            payment_method=p.payment_method,
            remarks=p.remarks,
            receipt_file_id=p.receipt_file_id,
            field_prefix=f"payments.{idx}.",
        )

    logger.info(
        "Order %s (%s) created by user %s with %d items and %d payments",
        order.order_id, order.tracking_id, creator.id, len(payload.items), len(payload.payments),
    )
    return order


def update_order(db: Session, order: Order, payload: OrderUpdate) -> Order:
    fields = payload.model_dump(exclude_unset=True)
    for name in NON_NULL_ORDER_FIELDS:
        if name in fields and fields[name] is None:
            raise ValidationFailed(name, "This field cannot be cleared")
    if "link_download" in fields and fields["link_download"] is not None:
        fields["link_download"] = str(fields["link_download"])

    method = fields.get("delivery_method", order.delivery_method)
    address = fields.get("shipping_address", order.shipping_address)
    _check_delivery(method, address)
    _check_dates(
        fields.get("due_date_design", order.due_date_design),
        fields.get("due_date_production", order.due_date_production),
        fields.get("estimated_delivery_date", order.estimated_delivery_date),
    )
    for key, value in fields.items():
        setattr(order, key, value)
    return order


def get_item(db: Session, item_id: int) -> OrderItem:
    item = db.query(OrderItem).filter(OrderItem.order_item_id == item_id).first()
    if not item:
        raise NotFound("Order item", item_id)
    return item


def lock_item(db: Session, item_id: int) -> OrderItem:
    return lock_order_child(db, OrderItem, OrderItem.order_item_id, item_id, "Order item")


def add_item(db: Session, order: Order, product_id: int, quantity: int, price) -> OrderItem:
    ensure_order_status(order, ("pending",), "Can only add items to pending orders")
    _check_product(db, product_id, "product_id")
    item = OrderItem(product_id=product_id, quantity=quantity, price=Decimal(str(price)))
    order.items.append(item)
    db.flush()
    return item


def update_item(db: Session, item: OrderItem, fields: Dict[str, Any]) -> OrderItem:
    ensure_order_status(item.order, ("pending",), "Can only update items in pending orders")
    fields = {k: v for k, v in fields.items() if k in ITEM_FIELDS and v is not None}
    if "product_id" in fields:
        _check_product(db, fields["product_id"], "product_id")
    if "price" in fields:
        fields["price"] = Decimal(str(fields["price"]))
    for key, value in fields.items():
        setattr(item, key, value)
    return item


def delete_item(db: Session, item: OrderItem) -> None:
    order = item.order
    ensure_order_status(order, ("pending",), "Can only delete items from pending orders")
    if len(order.items) <= 1:
        raise PreconditionFailed("Order must have at least one item", context={"order_id": order.order_id})
    order.items.remove(item)
    db.flush()


def financials(order: Order) -> Dict[str, Decimal]:
    amount = payment_ledger.total_amount(order.items)
    paid = payment_ledger.total_paid(order.payments)
    return {"total_amount": amount, "total_paid": paid, "balance": amount - paid}


def get_order_detail(db: Session, order: Order) -> Dict[str, Any]:
    return {
        "order": order,
        "financials": financials(order),
        "job_progress": job_progress(order.jobs),
    }


def _fmt(value, pattern):
    return value.strftime(pattern) if value else None


def tracking_data(order: Order) -> Dict[str, Any]:
    by_phase = {j.phase: j for j in order.jobs}
    phases = []
    for phase in PHASES:
        job = by_phase.get(phase)
        phases.append(
            {
                "phase": phase,
                "phase_name": PHASE_NAMES[phase],
                "status": job.status if job else "not_started",
                "start_time": _fmt(job.start_time, "%Y-%m-%d %H:%M") if job else None,
                "end_time": _fmt(job.end_time, "%Y-%m-%d %H:%M") if job else None,
            }
        )

    completed = sum(1 for p in phases if p["status"] == "completed")
    in_progress = sum(1 for p in phases if p["status"] == "in_progress")
    # half credit for a phase that is under way
    progress = round((completed + in_progress * 0.5) / len(PHASES) * 100)

    data = {
        "success": True,
        "order_id": order.order_id,
        "tracking_id": order.tracking_id,
        "job_name": order.job_name,
        "status": order.status,
        "created_at": _fmt(order.created_at, "%Y-%m-%d"),
        "delivery_method": order.delivery_method,
        "estimated_delivery": _fmt(order.estimated_delivery_date, "%Y-%m-%d"),
        "delivery_tracking_id": None,
        "job_progress": phases,
        "progress_percentage": progress,
    }
    if order.delivery_method == "delivery" and order.delivery_tracking_id:
        data["delivery_tracking_id"] = order.delivery_tracking_id
    return data


def track_by_code(db: Session, tracking_id: str) -> Dict[str, Any]:
    order = db.query(Order).filter(Order.tracking_id == tracking_id.strip().upper()).first()
    if not order:
        raise NotFound("Order", tracking_id)
    return tracking_data(order)


def track_by_id(db: Session, order_id: int) -> Dict[str, Any]:
    return tracking_data(get_order(db, order_id))
