from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Literal
from datetime import date, datetime

from fazztrack.schemas.common import Money


PaymentType = Literal["deposit_design", "deposit_production", "balance_payment"]
PaymentMethod = Literal["cash", "bank_transfer", "credit_card", "debit_card", "check", "other"]
PaymentStatus = Literal["pending", "approved", "rejected"]


class PaymentIn(BaseModel):
    type: PaymentType
    amount: float = Field(ge=0)
    payment_date: date
    payment_method: Optional[PaymentMethod] = None
    remarks: Optional[str] = None
    receipt_file_id: Optional[int] = None


class PaymentCreate(PaymentIn):
    order_id: int
    payment_method: PaymentMethod


class PaymentUpdate(BaseModel):
    type: Optional[PaymentType] = None
    payment_method: Optional[PaymentMethod] = None
    amount: Optional[float] = Field(default=None, ge=0)
    payment_date: Optional[date] = None
    remarks: Optional[str] = None
    receipt_file_id: Optional[int] = None


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_id: int
    order_id: int
    type: PaymentType
    payment_method: Optional[str] = None
    amount: Money
    payment_date: date
    remarks: Optional[str] = None
    receipt_file_id: Optional[int] = None
    status: Optional[PaymentStatus] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
