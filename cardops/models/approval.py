"""
Buyback approval models - SQLAlchemy ORM
"""
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from cardops.core.database import Base


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    # Written by older clients; treated the same as SUBMITTED
    RESPONDED = "responded"


TERMINAL_APPROVAL_STATUSES = {ApprovalStatus.SUBMITTED.value, ApprovalStatus.RESPONDED.value}


class Approval(Base):
    """Buyback price confirmation, shared with the customer through ``approval_key``"""

    __tablename__ = "approvals"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    approval_key = Column(String(64), unique=True, nullable=False, index=True)

    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False)
    total_price = Column(Numeric(12, 2), default=0, nullable=False)
    status = Column(String, default=ApprovalStatus.PENDING.value, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    expires_at = Column(DateTime(timezone=False), nullable=True)
    responded_at = Column(DateTime(timezone=False), nullable=True)
    customer_comment = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=False), server_default=func.now(), onupdate=func.now(), nullable=False)

    cards = relationship(
        "ApprovalCard",
        back_populates="approval",
        cascade="all, delete-orphan",
        order_by="ApprovalCard.id",
    )

    def __repr__(self):
        return f"<Approval(id={self.id}, status={self.status})>"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_APPROVAL_STATUSES


class ApprovalCard(Base):
    __tablename__ = "approval_cards"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    approval_id = Column(Integer, ForeignKey("approvals.id", ondelete="CASCADE"), nullable=False, index=True)

    card_name = Column(String, nullable=False)
    grade = Column(String, nullable=True)
    price = Column(Numeric(12, 2), default=0, nullable=False)
    status = Column(String, default=ApprovalStatus.PENDING.value, nullable=False)

    customer_decision = Column(String, nullable=True)
    customer_comment = Column(Text, nullable=True)

    approval = relationship("Approval", back_populates="cards")
