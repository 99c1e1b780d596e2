"""
Progress Service
Owns the six-step lifecycle of a grading request: step initialization,
step transitions, step detail payloads and the status history.
"""
from sqlalchemy.orm import Session
from pydantic import ValidationError as PydanticValidationError
from typing import List, Optional, Dict, Any
from datetime import datetime
import logging

from cardops.core.database import transaction
from cardops.core.exceptions import InvalidStep, NotFound, ValidationError
from cardops.models.grading_request import GradingRequest
from cardops.models.progress import (
    ProgressStep,
    StepDetail,
    ProgressHistory,
    StepNumber,
    StepStatus,
    STEP_NAMES,
)
from cardops.schemas.progress import StepDetailData
from cardops.utils.dates import utcnow

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"
SUBMISSION_NOTES = "submission received"


class ProgressService:
    """Service for progress step operations"""

    @staticmethod
    def validate_step_number(step_number: Any) -> StepNumber:
        try:
            return StepNumber(int(step_number))
        except (TypeError, ValueError):
            raise InvalidStep(f"Step number must be between 1 and 6, got {step_number!r}")

    @staticmethod
    def validate_step_status(status: Optional[str]) -> str:
        """Default to ``current`` when no status is given"""
        if status is None:
            return StepStatus.CURRENT.value
        try:
            return StepStatus(status).value
        except ValueError:
            allowed = ", ".join(s.value for s in StepStatus)
            raise ValidationError(f"Invalid step status '{status}'. Allowed: {allowed}")

    @staticmethod
    def normalize_detail(detail: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Check known detail fields and return a JSON-ready payload"""
        if detail is None:
            return None
        try:
            parsed = StepDetailData.model_validate(detail)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid step detail: {e.errors()[0]['msg']}")
        return parsed.model_dump(mode="json", exclude_unset=True)

    @staticmethod
    def initialize_steps(
        db: Session,
        request: GradingRequest,
        now: Optional[datetime] = None
    ) -> List[ProgressStep]:
        """
        Attach the six fixed steps to a request

        Runs inside the caller's transaction. Step 1 starts completed (the
        submission itself), steps 2-6 start pending. Steps the request
        already has are left untouched, so calling this twice adds nothing.

        Args:
            db: Database session
            request: Request being created or repaired
            now: Timestamp for the new rows

        Returns:
            The request's steps
        """
        now = now or utcnow()
        existing = {step.step_number for step in request.steps}

        for number in StepNumber:
            if int(number) in existing:
                continue
            if number == StepNumber.SUBMISSION:
                step = ProgressStep(
                    step_number=int(number),
                    step_name=STEP_NAMES[number],
                    status=StepStatus.COMPLETED.value,
                    updated_by=SYSTEM_ACTOR,
                    notes=SUBMISSION_NOTES,
                    updated_at=now,
                )
            else:
                step = ProgressStep(
                    step_number=int(number),
                    step_name=STEP_NAMES[number],
                    status=StepStatus.PENDING.value,
                    updated_by=None,
                    notes="",
                    updated_at=now,
                )
            request.steps.append(step)

        return request.steps

    @staticmethod
    def apply_step_transition(
        db: Session,
        request_id: str,
        step_number: Any,
        status: Optional[str] = None,
        notes: Optional[str] = None,
        detail: Optional[Dict[str, Any]] = None,
        actor: str = "admin"
    ) -> GradingRequest:
        """
        Apply a step update requested by an admin or an automated event

        The request's current step is set to ``step_number`` whatever the
        state of the other steps; any status may be written at any time.
        Step row, request pointer, detail upsert, card results and history
        entry are committed together or not at all.

        Args:
            db: Database session
            request_id: Request ID
            step_number: Step to update (1-6)
            status: New step status (defaults to current)
            notes: Step notes (cleared when omitted)
            detail: Optional structured payload for the step
            actor: Who made the change

        Returns:
            Updated GradingRequest

        Raises:
            InvalidStep, ValidationError, NotFound, StorageError
        """
        number = ProgressService.validate_step_number(step_number)
        new_status = ProgressService.validate_step_status(status)
        payload = ProgressService.normalize_detail(detail)

        with transaction(db):
            request = db.query(GradingRequest).filter(GradingRequest.id == request_id).first()
            if request is None:
                raise NotFound(f"Request {request_id} not found")

            step = db.query(ProgressStep).filter(
                ProgressStep.request_id == request_id,
                ProgressStep.step_number == int(number)
            ).first()
            if step is None:
                raise NotFound(f"Step {int(number)} of request {request_id} not found")

            now = utcnow()
            old_status = step.status

            step.status = new_status
            step.notes = notes or ""
            step.updated_by = actor
            step.updated_at = now

            request.current_step = int(number)
            request.updated_at = now

            if payload is not None:
                ProgressService._upsert_detail(db, request_id, number, payload, now)
                if payload.get("cards"):
                    ProgressService._apply_card_results(request, payload["cards"])

            db.add(ProgressHistory(
                request_id=request_id,
                step_number=int(number),
                old_status=old_status,
                new_status=new_status,
                changed_by=actor,
                notes=notes,
                created_at=now,
            ))

        logger.info(
            f"Request {request_id} step {int(number)}: {old_status} -> {new_status} by {actor}"
        )
        return request

    @staticmethod
    def _upsert_detail(
        db: Session,
        request_id: str,
        number: StepNumber,
        payload: Dict[str, Any],
        now: datetime
    ) -> StepDetail:
        detail = db.query(StepDetail).filter(
            StepDetail.request_id == request_id,
            StepDetail.step_number == int(number)
        ).first()

        if detail:
            detail.data = payload
            detail.updated_at = now
        else:
            detail = StepDetail(
                request_id=request_id,
                step_number=int(number),
                data=payload,
                created_at=now,
                updated_at=now,
            )
            db.add(detail)
        return detail

    @staticmethod
    def _apply_card_results(request: GradingRequest, results: List[Dict[str, Any]]) -> None:
        cards_by_id = {card.id: card for card in request.cards}
        for result in results:
            card = cards_by_id.get(result["card_id"])
            if card is None:
                raise ValidationError(
                    f"Card {result['card_id']} does not belong to request {request.id}"
                )
            if result.get("actual_grade") is not None:
                card.actual_grade = result["actual_grade"]
            if result.get("grading_fee") is not None:
                card.grading_fee = result["grading_fee"]
            if result.get("condition_notes") is not None:
                card.condition_notes = result["condition_notes"]

    @staticmethod
    def get_step_history(db: Session, request_id: str) -> List[ProgressHistory]:
        """Status changes of a request, newest first"""
        exists = db.query(GradingRequest.id).filter(GradingRequest.id == request_id).first()
        if not exists:
            raise NotFound(f"Request {request_id} not found")

        return db.query(ProgressHistory).filter(
            ProgressHistory.request_id == request_id
        ).order_by(ProgressHistory.created_at.desc(), ProgressHistory.id.desc()).all()
