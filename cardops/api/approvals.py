"""
Buyback approvals API endpoints (admin)
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from cardops.core.config import settings
from cardops.core.database import get_db
from cardops.core.dependencies import AdminUser, get_audit_logger, get_current_admin, get_notifier
from cardops.schemas.approval import ApprovalCreate, ApprovalResponse
from cardops.services.approval_service import ApprovalService
from cardops.services.audit_service import AuditLogger
from cardops.services.notification_service import Notifier, build_approval_requested, deliver
from cardops.utils.responses import success_response

router = APIRouter()


def _approval(approval) -> dict:
    return ApprovalResponse.model_validate(approval).model_dump(mode="json")


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_approval(
    data: ApprovalCreate,
    background_tasks: BackgroundTasks,
    notify_customer: bool = Query(True, description="Email the approval link to the customer"),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
    notifier: Notifier = Depends(get_notifier),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """
    Create a buyback approval

    - **cards**: card_name, grade, price for each offered card
    - **total_price**: defaults to the sum of card prices
    - **expiration_hours**: link lifetime, null for no deadline
    """
    approval = ApprovalService.create_approval(
        db,
        customer_name=data.customer_name,
        customer_email=data.customer_email,
        cards=data.cards,
        total_price=data.total_price,
        expiration_hours=data.expiration_hours,
        notes=data.notes,
    )
    audit.record(admin.email, "approval.create", approval.id, {"cards": len(approval.cards)})

    if notify_customer:
        email = build_approval_requested(
            recipient=approval.customer_email,
            customer_name=approval.customer_name,
            approval_key=approval.approval_key,
            total_price=float(approval.total_price),
            expires_at=approval.expires_at,
            base_url=settings.BASE_URL,
        )
        background_tasks.add_task(deliver, notifier, email)

    return success_response(data=_approval(approval), message="Approval created")


@router.get("", response_model=dict)
async def list_approvals(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin)
):
    """All approvals, newest first"""
    approvals = ApprovalService.list_approvals(db, status_filter)
    return success_response(data=[_approval(approval) for approval in approvals])


@router.get("/{approval_key}", response_model=dict)
async def get_approval(
    approval_key: str,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin)
):
    return success_response(data=_approval(ApprovalService.get_approval(db, approval_key)))
