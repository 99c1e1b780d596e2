"""
Admin audit log model
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from cardops.core.database import Base


class AdminLog(Base):
    __tablename__ = "admin_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    admin_user = Column(String, nullable=False)
    action = Column(String, nullable=False, index=True)
    target_id = Column(String, nullable=True, index=True)
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<AdminLog(id={self.id}, action={self.action}, target_id={self.target_id})>"
