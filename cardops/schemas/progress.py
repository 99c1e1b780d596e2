"""
Progress step Pydantic schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from cardops.schemas.common import ORMConfig


class CardGradeUpdate(BaseModel):
    """Grading result for one card, carried by step 4 / step 5 details"""
    card_id: int
    actual_grade: Optional[str] = None
    grading_fee: Optional[float] = Field(None, ge=0)
    condition_notes: Optional[str] = None


class StepDetailData(BaseModel):
    """
    Known shapes of a step detail payload.

    Every field is optional and unknown keys are kept as-is, so each step
    can carry whatever the admin console sends.
    """
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    psa_submission_number: Optional[str] = None
    estimated_completion_date: Optional[str] = None
    fees: Optional[Dict[str, float]] = None
    cards: Optional[List[CardGradeUpdate]] = None

    model_config = ConfigDict(extra="allow")


class StepUpdate(BaseModel):
    """
    Body of the step transition endpoint: ``{status, notes, ...detail fields}``

    Any field besides status/notes/detail is treated as detail payload.
    """
    status: Optional[str] = Field(None, description="pending / current / completed (default current)")
    notes: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")

    def detail_payload(self) -> Optional[Dict[str, Any]]:
        payload = dict(self.detail or {})
        payload.update(self.model_extra or {})
        return payload or None


class HistoryResponse(BaseModel):
    step_number: int
    old_status: Optional[str]
    new_status: str
    changed_by: Optional[str]
    notes: Optional[str]
    created_at: datetime

    model_config = ORMConfig
