"""
Payment model - SQLAlchemy ORM
"""
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from cardops.core.database import Base


class PaymentType(str, enum.Enum):
    AGENCY_FEE = "agency_fee"
    GRADING_FEE = "grading_fee"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class Payment(Base):
    """Fee payment attached to a request (step 3 agency fee, step 5 grading fee)"""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    request_id = Column(String(36), ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True)

    payment_type = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String, default=PaymentStatus.PENDING.value, nullable=False)
    payment_method = Column(String, nullable=True)
    payment_date = Column(DateTime(timezone=False), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=False), server_default=func.now(), onupdate=func.now(), nullable=False)

    request = relationship("GradingRequest", back_populates="payments")

    def __repr__(self):
        return f"<Payment(id={self.id}, request_id={self.request_id}, amount={self.amount}, status={self.status})>"
