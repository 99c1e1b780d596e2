"""
Grading request Pydantic schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from cardops.schemas.common import ORMConfig


# ============ Request Schemas ============

class CustomerIdentity(BaseModel):
    """Who is submitting; matched to an existing user by email"""
    email: str = Field(..., description="Customer email (used to find or create the user)")
    name: Optional[str] = Field(None, description="Customer name")
    phone: Optional[str] = Field(None, description="Customer phone number")


class CardSpec(BaseModel):
    card_name: str = Field(..., min_length=1)
    declared_value: float = Field(0, ge=0)
    estimated_grading_fee: float = Field(0, ge=0)


class GradingRequestCreate(BaseModel):
    """Schema for a customer grading submission"""
    customer: CustomerIdentity
    country: Optional[str] = Field(None, description="Destination grading country, e.g. usa / japan")
    plan_type: Optional[str] = Field(None, description="Plan, e.g. economy / standard / express")
    service_type: Optional[str] = Field(None, description="Defaults to psa-grading")
    total_declared_value: Optional[float] = Field(None, ge=0, description="Defaults to the sum of card values")
    total_estimated_grading_fee: Optional[float] = Field(None, ge=0)
    customer_notes: Optional[str] = None
    cards: List[CardSpec] = Field(default_factory=list)


class RequestStatusUpdate(BaseModel):
    status: str = Field(..., description="pending / in_progress / completed / cancelled / deleted")
    admin_notes: Optional[str] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None


# ============ Response Schemas ============

class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str]
    phone: Optional[str]
    created_at: datetime

    model_config = ORMConfig


class CardResponse(BaseModel):
    id: int
    position: int
    card_name: str
    declared_value: float
    estimated_grading_fee: float
    actual_grade: Optional[str]
    grading_fee: Optional[float]
    condition_notes: Optional[str]

    model_config = ORMConfig


class StepResponse(BaseModel):
    step_number: int
    step_name: str
    status: str
    updated_by: Optional[str]
    notes: str
    updated_at: datetime

    model_config = ORMConfig


class StepDetailResponse(BaseModel):
    step_number: int
    data: Dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = ORMConfig


class GradingRequestResponse(BaseModel):
    id: str
    user_id: int
    status: str
    current_step: int
    country: Optional[str]
    plan_type: Optional[str]
    service_type: str
    total_declared_value: float
    total_estimated_grading_fee: float
    admin_notes: Optional[str]
    customer_notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = ORMConfig


class RequestAggregateResponse(GradingRequestResponse):
    """Request with its owner, cards, steps and step details"""
    user: UserResponse
    cards: List[CardResponse]
    steps: List[StepResponse]
    step_details: List[StepDetailResponse]


class PublicStepResponse(BaseModel):
    step_number: int
    step_name: str
    status: str
    notes: str
    updated_at: datetime

    model_config = ORMConfig


class PublicProgressResponse(BaseModel):
    """Customer-facing progress view; no admin fields"""
    id: str
    status: str
    current_step: int
    created_at: datetime
    customer_name: Optional[str]
    steps: List[PublicStepResponse]
