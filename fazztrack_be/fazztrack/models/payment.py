from sqlalchemy import Column, Integer, String, Numeric, Text, Date, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from fazztrack.models.user import Base


class Payment(Base):
    __tablename__ = "payments"

    payment_id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(30), nullable=False)  # deposit_design, deposit_production, balance_payment
    payment_method = Column(String(30))  # cash, bank_transfer, credit_card, debit_card, check, other
    amount = Column(Numeric(10, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    remarks = Column(Text)
    receipt_file_id = Column(Integer, ForeignKey("file_attachments.file_id"), nullable=True)

    # NULL on rows recorded before approvals existed
    status = Column(String(20), nullable=True, default="pending")  # pending, approved, rejected
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    order = relationship("Order", back_populates="payments")
    receipt_file = relationship("FileAttachment")
    approver = relationship("User")
