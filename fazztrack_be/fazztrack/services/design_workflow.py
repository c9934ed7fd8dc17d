import logging
from typing import Optional

from sqlalchemy.orm import Session

from fazztrack.core.exceptions import NotFound, PreconditionFailed, ValidationFailed
from fazztrack.models.design import FileAttachment, OrderDesign
from fazztrack.models.order import Order
from fazztrack.models.user import User
from fazztrack.services.order_lifecycle import LifecycleEvent, lock_order_child, promote_if_eligible
from fazztrack.utils.storage import delete_attachment

logger = logging.getLogger(__name__)

DESIGN_STATUSES = ("new", "in_progress", "finalized", "completed")
LOCKED_STATUSES = ("finalized", "completed")


def get_design(db: Session, design_id: int) -> OrderDesign:
    design = db.query(OrderDesign).filter(OrderDesign.design_id == design_id).first()
    if not design:
        raise NotFound("Design", design_id)
    return design


def lock_design(db: Session, design_id: int) -> OrderDesign:
    return lock_order_child(db, OrderDesign, OrderDesign.design_id, design_id, "Design")


def _check_designer(user: User) -> None:
    if user.department != "Designer":
        raise PreconditionFailed("The assigned user must be a designer", context={"user_id": user.id})


def _check_status(status: str) -> None:
    if status not in DESIGN_STATUSES:
        raise ValidationFailed("status", f"Unknown design status '{status}'")


def create_design(db: Session, order: Order, designer: User, status: Optional[str] = None) -> OrderDesign:
    if order.design is not None:
        raise PreconditionFailed("This order already has a design assigned", context={"order_id": order.order_id})
    _check_designer(designer)
    status = status or "new"
    _check_status(status)

    design = OrderDesign(designer_id=designer.id, status=status)
    order.design = design
    db.flush()
    logger.info("Design %s created for order %s (designer %s)", design.design_id, order.order_id, designer.id)
    return design


def attach_file(db: Session, design: OrderDesign, attachment: FileAttachment) -> OrderDesign:
    """Point the design at a new file; the file it replaces is removed from storage on commit."""
    previous = design.design_file
    design.design_file = attachment
    if previous is not None and previous is not attachment:
        db.flush()
        delete_attachment(db, previous)
    logger.info("Design %s file set to attachment %s", design.design_id, attachment.file_id)
    return design


def finalize_design(db: Session, design: OrderDesign) -> OrderDesign:
    if not design.design_file_id and design.design_file is None:
        raise PreconditionFailed(
            "Cannot finalize design without an uploaded file", context={"design_id": design.design_id}
        )
    design.status = "finalized"
    logger.info("Design %s finalized", design.design_id)
    promote_if_eligible(db, design.order, LifecycleEvent.WORK_STARTED)
    return design


def reassign_design(db: Session, design: OrderDesign, designer: User) -> OrderDesign:
    _check_designer(designer)
    design.designer_id = designer.id
    return design


def update_design(
    db: Session, design: OrderDesign, designer: Optional[User] = None, status: Optional[str] = None
) -> OrderDesign:
    if designer is not None:
        reassign_design(db, design, designer)
    if status is not None:
        _check_status(status)
        design.status = status
    return design


def delete_design(db: Session, design: OrderDesign) -> None:
    if design.status in LOCKED_STATUSES:
        raise PreconditionFailed(
            "Cannot delete finalized or completed designs", context={"design_id": design.design_id}
        )
    attachment = design.design_file
    design.order.design = None
    db.flush()
    delete_attachment(db, attachment)
    logger.info("Design %s deleted", design.design_id)
