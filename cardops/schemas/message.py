"""
Message Pydantic schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from cardops.schemas.common import ORMConfig


class MessageCreate(BaseModel):
    request_id: Optional[str] = Field(None, description="Omit for a general message")
    sender: str = "admin"
    recipient: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    id: int
    request_id: Optional[str]
    sender: str
    recipient: str
    body: str
    is_read: bool
    created_at: datetime

    model_config = ORMConfig
