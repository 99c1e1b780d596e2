"""
User model - SQLAlchemy ORM
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from cardops.core.database import Base


class User(Base):
    """Customer identity, found-or-created by email on first submission"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)
    phone = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=False), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Referenced, not owned: users are never deleted with their requests
    requests = relationship("GradingRequest", back_populates="user")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
