from sqlalchemy import Column, Integer, String, Numeric, Text, Date, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from fazztrack.models.user import Base


class Client(Base):
    __tablename__ = "clients"

    client_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    address = Column(Text)


class Product(Base):
    __tablename__ = "products"

    product_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)


class Order(Base):
    __tablename__ = "orders"

    order_id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.client_id"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    job_name = Column(String(255), nullable=False)
    # pending, approved, in_progress, qc_packaging, in_delivery, ready_to_collect, completed, delivered
    status = Column(String(20), nullable=False, default="pending")
    # public tracking code, assigned once on creation
    tracking_id = Column(String(32), unique=True, index=True, nullable=False)

    delivery_method = Column(String(20), nullable=False)  # self_collect, delivery
    shipping_address = Column(Text)
    delivery_tracking_id = Column(String(100))

    due_date_design = Column(Date, nullable=False)
    due_date_production = Column(Date, nullable=False)
    estimated_delivery_date = Column(Date, nullable=False)
    link_download = Column(String(255))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("Client")
    creator = relationship("User")
    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.order_item_id"
    )
    payments = relationship(
        "Payment", back_populates="order", cascade="all, delete-orphan", order_by="Payment.payment_id"
    )
    design = relationship("OrderDesign", back_populates="order", uselist=False, cascade="all, delete-orphan")
    jobs = relationship("Job", back_populates="order", cascade="all, delete-orphan", order_by="Job.job_id")


class OrderItem(Base):
    __tablename__ = "order_items"

    order_item_id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.product_id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)  # unit price at time of order

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
