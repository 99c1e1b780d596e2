"""
Payment Pydantic schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from cardops.models.payment import PaymentType, PaymentStatus
from cardops.schemas.common import ORMConfig


class PaymentCreate(BaseModel):
    payment_type: PaymentType
    amount: float = Field(..., gt=0)
    payment_method: Optional[str] = None
    notes: Optional[str] = None


class PaymentStatusUpdate(BaseModel):
    status: PaymentStatus


class PaymentResponse(BaseModel):
    id: int
    request_id: str
    payment_type: str
    amount: float
    status: str
    payment_method: Optional[str]
    payment_date: Optional[datetime]
    notes: Optional[str]
    created_at: datetime

    model_config = ORMConfig

