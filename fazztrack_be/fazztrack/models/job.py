from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from fazztrack.models.user import Base


class Job(Base):
    __tablename__ = "jobs"
    __table_args__ = (
        UniqueConstraint("order_id", "phase", name="uq_job_order_phase"),
    )

    job_id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, index=True)
    phase = Column(String(20), nullable=False)  # design, print, press, cut, sew, qc, iron_packing
    status = Column(String(20), nullable=False, default="pending")  # pending, in_progress, completed
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=False)
    start_time = Column(DateTime)
    end_time = Column(DateTime)
    duration = Column(Integer)  # whole minutes
    qr_code_hash = Column(String(32), unique=True, index=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    order = relationship("Order", back_populates="jobs")
    assignee = relationship("User")
