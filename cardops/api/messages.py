"""
Messages API endpoints (admin)
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from cardops.core.database import get_db
from cardops.core.dependencies import AdminUser, get_audit_logger, get_current_admin
from cardops.schemas.message import MessageCreate, MessageResponse
from cardops.services.audit_service import AuditLogger
from cardops.services.message_service import MessageService
from cardops.utils.responses import success_response

router = APIRouter()


def _message(message) -> dict:
    return MessageResponse.model_validate(message).model_dump(mode="json")


@router.get("/messages", response_model=dict)
async def list_messages(
    request_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin)
):
    """Messages oldest first; filter by **request_id**"""
    messages = MessageService.list_messages(db, request_id)
    return success_response(data=[_message(m) for m in messages])


@router.post("/messages", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_message(
    data: MessageCreate,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
    audit: AuditLogger = Depends(get_audit_logger)
):
    message = MessageService.create_message(
        db,
        recipient=data.recipient,
        body=data.body,
        sender=data.sender,
        request_id=data.request_id,
    )
    audit.record(admin.email, "message.create", message.id, {"request_id": data.request_id, "recipient": data.recipient})
    return success_response(data=_message(message), message="Message sent")


@router.patch("/messages/{message_id}/read", response_model=dict)
async def mark_read(
    message_id: int,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin)
):
    return success_response(data=_message(MessageService.mark_read(db, message_id)))


@router.patch("/requests/{request_id}/messages/read", response_model=dict)
async def mark_request_read(
    request_id: str,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin)
):
    """Mark the customer's messages on a request as read"""
    updated = MessageService.mark_request_read(db, request_id)
    return success_response(data={"updated": updated})
