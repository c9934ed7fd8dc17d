"""Order status state machine.

Guarded operator transitions (``approve_order``, ``delete_order``) raise
``PreconditionFailed``. Automatic promotions go through
``promote_if_eligible``, which only ever moves an order along one of the
edges below and silently does nothing otherwise, so a promotion can never
fail the payment/design/job operation that fired it.

    pending -> approved -> in_progress -> {qc_packaging | in_delivery | ready_to_collect} -> completed

``override_status`` is the administrative escape hatch and writes any
declared status without looking at the current one.
"""
import enum
import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Session

from fazztrack.core.exceptions import NotFound, PreconditionFailed, ValidationFailed
from fazztrack.models.order import Order

logger = logging.getLogger(__name__)

ORDER_STATUSES = (
    "pending",
    "approved",
    "in_progress",
    "qc_packaging",
    "in_delivery",
    "ready_to_collect",
    "completed",
    "delivered",
)

DELIVERY_METHODS = ("self_collect", "delivery")

# statuses in which production jobs and designs may be created
WORKABLE_STATUSES = ("approved", "in_progress")


class LifecycleEvent(str, enum.Enum):
    DEPOSIT_APPROVED = "deposit_approved"
    WORK_STARTED = "work_started"
    PRODUCTION_FINISHED = "production_finished"


def _finished_target(order: Order) -> str:
    return "in_delivery" if order.delivery_method == "delivery" else "ready_to_collect"


def _all_jobs_completed(order: Order) -> bool:
    return bool(order.jobs) and all(j.status == "completed" for j in order.jobs)


# event -> (required current status, guard, target)
PROMOTIONS = {
    LifecycleEvent.DEPOSIT_APPROVED: ("pending", lambda order: True, lambda order: "approved"),
    LifecycleEvent.WORK_STARTED: ("approved", lambda order: True, lambda order: "in_progress"),
    LifecycleEvent.PRODUCTION_FINISHED: ("in_progress", _all_jobs_completed, _finished_target),
}


def _set_status(order: Order, status: str) -> None:
    order.status = status
    order.updated_at = datetime.utcnow()


def lock_order(db: Session, order_id: int) -> Order:
    """Load an order with a row lock so concurrent writers on it serialize."""
    order = db.query(Order).filter(Order.order_id == order_id).with_for_update().populate_existing().first()
    if not order:
        raise NotFound("Order", order_id)
    return order


def lock_order_child(db: Session, model, key, ident, entity: str):
    """Lock the order owning a child row, then load that row.

    Only the child's ``order_id`` is read before the lock. The row itself is
    loaded afterwards with ``populate_existing`` so any copy already in the
    session is overwritten with what committed writers left behind.
    """
    order_id = db.query(model.order_id).filter(key == ident).scalar()
    if order_id is None:
        raise NotFound(entity, ident)
    lock_order(db, order_id)
    child = db.query(model).filter(key == ident).populate_existing().first()
    if child is None:
        raise NotFound(entity, ident)
    return child


def promote_if_eligible(db: Session, order: Order, event: LifecycleEvent) -> bool:
    """Apply the promotion for ``event`` if the order is where it should be.

    Returns True when the status changed.
    """
    required, guard, target = PROMOTIONS[event]
    if order.status != required:
        logger.debug("Order %s: %s ignored in status %s", order.order_id, event.value, order.status)
        return False
    # reload jobs so the guard sees rows written earlier in this transaction
    db.flush()
    db.expire(order, ["jobs"])
    if not guard(order):
        return False
    new_status = target(order)
    logger.info("Order %s promoted %s -> %s (%s)", order.order_id, order.status, new_status, event.value)
    _set_status(order, new_status)
    return True


def ensure_order_status(order: Order, allowed: Iterable[str], rule: str) -> None:
    allowed = tuple(allowed)
    if order.status not in allowed:
        raise PreconditionFailed(
            rule,
            context={"order_id": order.order_id, "status": order.status, "allowed": list(allowed)},
        )


def approve_order(db: Session, order: Order) -> Order:
    ensure_order_status(order, ("pending",), "Only pending orders can be approved")
    logger.info("Order %s approved by operator", order.order_id)
    _set_status(order, "approved")
    return order


def override_status(db: Session, order: Order, status: str) -> Order:
    if status not in ORDER_STATUSES:
        raise ValidationFailed("status", f"Unknown order status '{status}'")
    if status != order.status:
        logger.warning("Order %s status overridden %s -> %s", order.order_id, order.status, status)
    _set_status(order, status)
    return order


def delete_order(db: Session, order: Order) -> None:
    ensure_order_status(order, ("pending",), "Only pending orders can be deleted")
    logger.info("Deleting order %s", order.order_id)
    db.delete(order)
