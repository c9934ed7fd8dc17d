from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from fazztrack.models.user import User, get_db
from fazztrack.schemas.payment import PaymentCreate, PaymentOut, PaymentUpdate
from fazztrack.services import order_lifecycle, payment_ledger
from fazztrack.services.authorization import authorize
from fazztrack.utils.security import get_current_user


router = APIRouter()


@router.post("/", response_model=PaymentOut, status_code=201)
def create_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "payment.create")
    order = order_lifecycle.lock_order(db, payload.order_id)
    payment = payment_ledger.record_payment(
        db,
        order,
        type=payload.type,
        amount=payload.amount,
        payment_date=payload.payment_date,
        payment_method=payload.payment_method,
        remarks=payload.remarks,
        receipt_file_id=payload.receipt_file_id,
    )
    db.commit()
    db.refresh(payment)
    return PaymentOut.model_validate(payment)


@router.get("/{id}", response_model=PaymentOut)
def get_payment(id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    payment = payment_ledger.get_payment(db, id)
    authorize(current_user, "payment.view", payment)
    return PaymentOut.model_validate(payment)


@router.put("/{id}", response_model=PaymentOut)
def update_payment(
    id: int,
    payload: PaymentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    payment = payment_ledger.lock_payment(db, id)
    authorize(current_user, "payment.update", payment)
    payment_ledger.update_payment(db, payment, payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(payment)
    return PaymentOut.model_validate(payment)


@router.post("/{id}/approve")
def approve_payment(id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    payment = payment_ledger.lock_payment(db, id)
    authorize(current_user, "payment.approve", payment)
    payment_ledger.approve_payment(db, payment, current_user)
    db.commit()
    db.refresh(payment)
    return {"message": "Payment approved successfully", "payment": PaymentOut.model_validate(payment)}


@router.post("/{id}/reject")
def reject_payment(id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    payment = payment_ledger.lock_payment(db, id)
    authorize(current_user, "payment.reject", payment)
    payment_ledger.reject_payment(db, payment)
    db.commit()
    db.refresh(payment)
    return {"message": "Payment rejected", "payment": PaymentOut.model_validate(payment)}


@router.delete("/{id}", status_code=204)
def delete_payment(id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    payment = payment_ledger.lock_payment(db, id)
    authorize(current_user, "payment.delete", payment)
    payment_ledger.delete_payment(db, payment)
    db.commit()
    return Response(status_code=204)
