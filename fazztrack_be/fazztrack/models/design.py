from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from fazztrack.models.user import Base


class FileAttachment(Base):
    __tablename__ = "file_attachments"

    file_id = Column(Integer, primary_key=True, index=True)
    file_path = Column(String(255), nullable=False)  # /media/<subdir>/<file>
    file_name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class OrderDesign(Base):
    __tablename__ = "order_designs"

    design_id = Column(Integer, primary_key=True, index=True)
    order_id = Column(
        Integer, ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    status = Column(String(20), nullable=False, default="new")  # new, in_progress, finalized, completed
    designer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    design_file_id = Column(Integer, ForeignKey("file_attachments.file_id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    order = relationship("Order", back_populates="design")
    designer = relationship("User")
    design_file = relationship("FileAttachment")
