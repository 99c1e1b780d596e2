"""
Public API endpoints
Unauthenticated progress lookup and buyback approval pages
"""
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from cardops.core.config import settings
from cardops.core.database import get_db
from cardops.core.dependencies import get_notifier
from cardops.schemas.approval import ApprovalSubmit, PublicApprovalResponse
from cardops.services.approval_service import ApprovalService
from cardops.services.notification_service import Notifier, build_approval_answered, deliver
from cardops.services.request_service import RequestService
from cardops.utils.responses import success_response

router = APIRouter()


@router.get("/requests/{request_id}/progress", response_model=dict)
async def get_progress(request_id: str, db: Session = Depends(get_db)):
    """
    Customer progress view

    Shows the six steps with their status and notes. Admin notes, step
    details and card values are not exposed.
    """
    progress = RequestService.get_public_progress(db, request_id)
    return success_response(data=progress.model_dump(mode="json"))


@router.get("/approvals/{approval_key}", response_model=dict)
async def get_approval(approval_key: str, db: Session = Depends(get_db)):
    """Buyback offer for the customer; 410 once a pending offer has expired"""
    approval = ApprovalService.get_public_approval(db, approval_key)
    return success_response(data=PublicApprovalResponse.model_validate(approval).model_dump(mode="json"))


@router.post("/approvals/{approval_key}/submit", response_model=dict)
async def submit_approval(
    approval_key: str,
    data: ApprovalSubmit,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Record the customer's answer

    - **cards**: list of {card_name, decision: approved | rejected, comment}
    - **comment**: overall comment

    An approval can be answered once.
    """
    approval = ApprovalService.record_customer_response(
        db, approval_key, data.cards, comment=data.comment
    )

    decisions = [card.customer_decision for card in approval.cards]
    email = build_approval_answered(
        recipient=settings.admin_notify_address,
        customer_name=approval.customer_name,
        approval_id=approval.id,
        approved=decisions.count("approved"),
        rejected=decisions.count("rejected"),
        comment=approval.customer_comment,
    )
    background_tasks.add_task(deliver, notifier, email)

    return success_response(
        data=PublicApprovalResponse.model_validate(approval).model_dump(mode="json"),
        message="Thank you, your answer has been recorded",
    )
