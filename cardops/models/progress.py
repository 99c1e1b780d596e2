"""
Progress tracking models - the fixed six-step fulfillment pipeline
"""
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from cardops.core.database import Base


class StepNumber(enum.IntEnum):
    SUBMISSION = 1
    INSPECTION = 2
    AGENCY_FEE_PAYMENT = 3
    GRADING = 4
    GRADING_FEE_PAYMENT = 5
    RETURN = 6


class StepStatus(str, enum.Enum):
    PENDING = "pending"
    CURRENT = "current"
    COMPLETED = "completed"


STEP_NAMES = {
    StepNumber.SUBMISSION: "Submission received",
    StepNumber.INSPECTION: "Card receipt & inspection",
    StepNumber.AGENCY_FEE_PAYMENT: "Agency fee payment",
    StepNumber.GRADING: "Grading in progress",
    StepNumber.GRADING_FEE_PAYMENT: "Grading fee payment",
    StepNumber.RETURN: "Return & complete",
}


class ProgressStep(Base):
    """One of the six steps of a request; exactly one row per (request, step)"""

    __tablename__ = "progress_steps"
    __table_args__ = (
        UniqueConstraint("request_id", "step_number", name="uq_progress_steps_request_step"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    request_id = Column(String(36), ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True)
    step_number = Column(Integer, nullable=False)
    step_name = Column(String, nullable=False)

    status = Column(String, default=StepStatus.PENDING.value, nullable=False)
    updated_by = Column(String, nullable=True)
    notes = Column(Text, default="", nullable=False)

    updated_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)

    request = relationship("GradingRequest", back_populates="steps")

    def __repr__(self):
        return f"<ProgressStep(request_id={self.request_id}, step={self.step_number}, status={self.status})>"


class StepDetail(Base):
    """Free-form structured data for one step of a request"""

    __tablename__ = "step_details"
    __table_args__ = (
        UniqueConstraint("request_id", "step_number", name="uq_step_details_request_step"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    request_id = Column(String(36), ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True)
    step_number = Column(Integer, nullable=False)
    data = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)

    request = relationship("GradingRequest", back_populates="step_details")


class ProgressHistory(Base):
    """Append-only log of step status changes"""

    __tablename__ = "progress_history"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    request_id = Column(String(36), ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True)
    step_number = Column(Integer, nullable=False)
    old_status = Column(String, nullable=True)
    new_status = Column(String, nullable=False)
    changed_by = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)

    request = relationship("GradingRequest", back_populates="history")
