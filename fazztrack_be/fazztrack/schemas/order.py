from pydantic import BaseModel, Field, AnyHttpUrl, ConfigDict
from typing import List, Optional, Literal
from datetime import date, datetime

from fazztrack.schemas.common import Money
from fazztrack.schemas.payment import PaymentIn, PaymentOut
from fazztrack.schemas.design import DesignOut
from fazztrack.schemas.job import JobOut


OrderStatus = Literal[
    "pending", "approved", "in_progress", "qc_packaging", "in_delivery", "ready_to_collect", "completed", "delivered"
]
DeliveryMethod = Literal["self_collect", "delivery"]


class OrderItemIn(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)
    price: float = Field(ge=0)


class OrderItemUpdate(BaseModel):
    product_id: Optional[int] = None
    quantity: Optional[int] = Field(default=None, ge=1)
    price: Optional[float] = Field(default=None, ge=0)


class OrderCreate(BaseModel):
    client_id: int
    job_name: str = Field(min_length=1, max_length=255)
    delivery_method: DeliveryMethod
    shipping_address: Optional[str] = None
    due_date_design: date
    due_date_production: date
    estimated_delivery_date: date
    link_download: Optional[AnyHttpUrl] = None
    items: List[OrderItemIn] = Field(min_length=1)
    payments: List[PaymentIn] = Field(min_length=1)


class OrderUpdate(BaseModel):
    job_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    delivery_method: Optional[DeliveryMethod] = None
    shipping_address: Optional[str] = None
    delivery_tracking_id: Optional[str] = Field(default=None, max_length=100)
    due_date_design: Optional[date] = None
    due_date_production: Optional[date] = None
    estimated_delivery_date: Optional[date] = None
    link_download: Optional[AnyHttpUrl] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    order_item_id: int
    order_id: int
    product_id: int
    quantity: int
    price: Money


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    order_id: int
    client_id: int
    created_by: int
    job_name: str
    status: OrderStatus
    tracking_id: str
    delivery_method: DeliveryMethod
    shipping_address: Optional[str] = None
    delivery_tracking_id: Optional[str] = None
    due_date_design: date
    due_date_production: date
    estimated_delivery_date: date
    link_download: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut] = []
    payments: List[PaymentOut] = []
    design: Optional[DesignOut] = None
    jobs: List[JobOut] = []


class Financials(BaseModel):
    total_amount: Money
    total_paid: Money
    balance: Money


class JobProgress(BaseModel):
    total: int
    completed: int
    in_progress: int
    pending: int


class OrderDetailOut(BaseModel):
    order: OrderOut
    financials: Financials
    job_progress: JobProgress
