"""
Message model - SQLAlchemy ORM
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from cardops.core.database import Base


class Message(Base):
    """Message between admin and customer. Append-only apart from ``is_read``."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    # Nullable: general messages are not tied to a request
    request_id = Column(String(36), ForeignKey("requests.id", ondelete="CASCADE"), nullable=True, index=True)

    sender = Column(String, nullable=False)
    recipient = Column(String, nullable=False, index=True)
    body = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)

    request = relationship("GradingRequest", back_populates="messages")

    def __repr__(self):
        return f"<Message(id={self.id}, request_id={self.request_id}, sender={self.sender})>"
