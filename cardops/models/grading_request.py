"""
Grading request and card models - SQLAlchemy ORM
"""
import enum
import uuid

from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from cardops.core.database import Base


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DELETED = "deleted"


def _new_request_id() -> str:
    return str(uuid.uuid4())


class GradingRequest(Base):
    """A customer's grading/agency submission; root of the request aggregate"""

    __tablename__ = "requests"

    # UUID string: also the key of the public progress lookup
    id = Column(String(36), primary_key=True, default=_new_request_id)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String, default=RequestStatus.PENDING.value, nullable=False, index=True)
    current_step = Column(Integer, default=1, nullable=False)

    country = Column(String, nullable=True, index=True)
    plan_type = Column(String, nullable=True)
    service_type = Column(String, default="psa-grading", nullable=False)

    total_declared_value = Column(Numeric(12, 2), default=0, nullable=False)
    total_estimated_grading_fee = Column(Numeric(12, 2), default=0, nullable=False)

    admin_notes = Column(Text, nullable=True)
    customer_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=False), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    user = relationship("User", back_populates="requests")
    cards = relationship(
        "Card",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="Card.position",
    )
    steps = relationship(
        "ProgressStep",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="ProgressStep.step_number",
    )
    step_details = relationship(
        "StepDetail",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="StepDetail.step_number",
    )
    history = relationship("ProgressHistory", back_populates="request", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="request", cascade="all, delete-orphan")
    messages = relationship("Message", back_populates="request", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<GradingRequest(id={self.id}, status={self.status}, current_step={self.current_step})>"


class Card(Base):
    """A card submitted with a request. Count is fixed at creation."""

    __tablename__ = "cards"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    request_id = Column(String(36), ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    card_name = Column(String, nullable=False)
    declared_value = Column(Numeric(12, 2), default=0, nullable=False)
    estimated_grading_fee = Column(Numeric(12, 2), default=0, nullable=False)

    # Filled in by step 4 / step 5 transitions
    actual_grade = Column(String, nullable=True)
    grading_fee = Column(Numeric(12, 2), nullable=True)
    condition_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)

    request = relationship("GradingRequest", back_populates="cards")

    def __repr__(self):
        return f"<Card(id={self.id}, request_id={self.request_id}, card_name={self.card_name})>"
