import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from fazztrack.core.exceptions import NotFound, PreconditionFailed, ValidationFailed
from fazztrack.models.design import FileAttachment
from fazztrack.models.order import Order, OrderItem
from fazztrack.models.payment import Payment
from fazztrack.models.user import User
from fazztrack.services.order_lifecycle import LifecycleEvent, lock_order_child, promote_if_eligible

logger = logging.getLogger(__name__)

PAYMENT_TYPES = ("deposit_design", "deposit_production", "balance_payment")
PAYMENT_METHODS = ("cash", "bank_transfer", "credit_card", "debit_card", "check", "other")
PAYMENT_STATUSES = ("pending", "approved", "rejected")

# payments whose amount counts towards what the client has paid;
# None covers rows recorded before payment approval existed
SETTLED_STATUSES = ("approved", None)

EDITABLE_FIELDS = ("type", "payment_method", "amount", "payment_date", "remarks", "receipt_file_id")
NON_NULL_FIELDS = ("type", "amount", "payment_date")


def get_payment(db: Session, payment_id: int) -> Payment:
    payment = db.query(Payment).filter(Payment.payment_id == payment_id).first()
    if not payment:
        raise NotFound("Payment", payment_id)
    return payment


def lock_payment(db: Session, payment_id: int) -> Payment:
    return lock_order_child(db, Payment, Payment.payment_id, payment_id, "Payment")


def _check_receipt(db: Session, receipt_file_id: Optional[int], field: str = "receipt_file_id") -> None:
    if receipt_file_id is None:
        return
    if not db.query(FileAttachment.file_id).filter(FileAttachment.file_id == receipt_file_id).first():
        raise ValidationFailed(field, f"File {receipt_file_id} does not exist")


def _check_fields(fields: dict, prefix: str = "") -> None:
    if "type" in fields and fields["type"] not in PAYMENT_TYPES:
        raise ValidationFailed(f"{prefix}type", f"Unknown payment type '{fields['type']}'")
    method = fields.get("payment_method")
    if method is not None and method not in PAYMENT_METHODS:
        raise ValidationFailed(f"{prefix}payment_method", f"Unknown payment method '{method}'")
    if "amount" in fields and Decimal(str(fields["amount"])) < 0:
        raise ValidationFailed(f"{prefix}amount", "Amount must be zero or more")


def record_payment(
    db: Session,
    order: Order,
    type: str,
    amount,
    payment_date: date,
    payment_method: Optional[str] = None,
    remarks: Optional[str] = None,
    receipt_file_id: Optional[int] = None,
    field_prefix: str = "",
) -> Payment:
    _check_fields({"type": type, "amount": amount, "payment_method": payment_method}, field_prefix)
    _check_receipt(db, receipt_file_id, f"{field_prefix}receipt_file_id")
    payment = Payment(
        type=type,
        amount=Decimal(str(amount)),
        payment_date=payment_date,
        payment_method=payment_method,
        remarks=remarks,
        receipt_file_id=receipt_file_id,
        status="pending",
    )
    order.payments.append(payment)
    db.flush()
    logger.info("Recorded %s payment %s of %s on order %s", type, payment.payment_id, amount, order.order_id)
    return payment


def approve_payment(db: Session, payment: Payment, approver: User, now: Optional[datetime] = None) -> Payment:
    if payment.status == "approved":
        raise PreconditionFailed("Payment is already approved", context={"payment_id": payment.payment_id})

    payment.status = "approved"
    payment.approved_by = approver.id
    payment.approved_at = now or datetime.utcnow()
    logger.info("Payment %s approved by user %s", payment.payment_id, approver.id)

    if payment.type == "deposit_design":
        promote_if_eligible(db, payment.order, LifecycleEvent.DEPOSIT_APPROVED)
    return payment


def reject_payment(db: Session, payment: Payment) -> Payment:
    if payment.status != "pending":
        raise PreconditionFailed(
            "Only pending payments can be rejected", context={"payment_id": payment.payment_id}
        )
    payment.status = "rejected"
    logger.info("Payment %s rejected", payment.payment_id)
    return payment


def update_payment(db: Session, payment: Payment, fields: dict) -> Payment:
    if payment.status == "approved":
        raise PreconditionFailed("Cannot update approved payments", context={"payment_id": payment.payment_id})
    fields = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    for name in NON_NULL_FIELDS:
        if name in fields and fields[name] is None:
            raise ValidationFailed(name, "This field cannot be cleared")
    _check_fields(fields)
    if "receipt_file_id" in fields:
        _check_receipt(db, fields["receipt_file_id"])
    for key, value in fields.items():
        if key == "amount":
            value = Decimal(str(value))
        setattr(payment, key, value)
    return payment


def delete_payment(db: Session, payment: Payment) -> None:
    if payment.status == "approved":
        raise PreconditionFailed("Cannot delete approved payments", context={"payment_id": payment.payment_id})
    logger.info("Deleting payment %s of order %s", payment.payment_id, payment.order_id)
    payment.order.payments.remove(payment)
    db.flush()


def total_amount(items: Iterable[OrderItem]) -> Decimal:
    return sum((Decimal(str(i.price)) * i.quantity for i in items), Decimal("0"))


def total_paid(payments: Iterable[Payment]) -> Decimal:
    return sum((Decimal(str(p.amount)) for p in payments if p.status in SETTLED_STATUSES), Decimal("0"))


def balance(order: Order) -> Decimal:
    return total_amount(order.items) - total_paid(order.payments)
