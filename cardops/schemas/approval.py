"""
Buyback approval Pydantic schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime
from cardops.core.config import settings
from cardops.schemas.common import ORMConfig


# ============ Request Schemas ============

class ApprovalCardCreate(BaseModel):
    card_name: str = Field(..., min_length=1)
    grade: Optional[str] = None
    price: float = Field(0, ge=0)


class ApprovalCreate(BaseModel):
    customer_name: str = Field(..., min_length=1)
    customer_email: str = Field(..., min_length=3)
    cards: List[ApprovalCardCreate] = Field(..., min_length=1)
    total_price: Optional[float] = Field(None, ge=0, description="Defaults to the sum of card prices")
    expiration_hours: Optional[int] = Field(
        default_factory=lambda: settings.APPROVAL_EXPIRATION_HOURS,
        ge=1,
        description="Hours until the approval link expires; null for no deadline",
    )
    notes: Optional[str] = None


class CardDecision(BaseModel):
    card_name: str
    decision: Literal["approved", "rejected"]
    comment: Optional[str] = None


class ApprovalSubmit(BaseModel):
    """Customer response to an approval"""
    cards: List[CardDecision] = Field(default_factory=list)
    comment: Optional[str] = None


# ============ Response Schemas ============

class ApprovalCardResponse(BaseModel):
    id: int
    card_name: str
    grade: Optional[str]
    price: float
    status: str
    customer_decision: Optional[str]
    customer_comment: Optional[str]

    model_config = ORMConfig


class ApprovalResponse(BaseModel):
    id: int
    approval_key: str
    customer_name: str
    customer_email: str
    total_price: float
    status: str
    notes: Optional[str]
    expires_at: Optional[datetime]
    responded_at: Optional[datetime]
    customer_comment: Optional[str]
    created_at: datetime
    updated_at: datetime
    cards: List[ApprovalCardResponse]

    model_config = ORMConfig


class PublicApprovalCard(BaseModel):
    card_name: str
    grade: Optional[str]
    price: float
    customer_decision: Optional[str]

    model_config = ORMConfig


class PublicApprovalResponse(BaseModel):
    customer_name: str
    total_price: float
    status: str
    notes: Optional[str]
    expires_at: Optional[datetime]
    cards: List[PublicApprovalCard]

    model_config = ORMConfig
