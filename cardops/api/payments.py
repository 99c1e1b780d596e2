"""
Payments API endpoints (admin)
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cardops.core.database import get_db
from cardops.core.dependencies import AdminUser, get_audit_logger, get_current_admin
from cardops.schemas.payment import PaymentCreate, PaymentResponse, PaymentStatusUpdate
from cardops.services.audit_service import AuditLogger
from cardops.services.payment_service import PaymentService
from cardops.utils.responses import success_response

router = APIRouter()


def _payment(payment) -> dict:
    return PaymentResponse.model_validate(payment).model_dump(mode="json")


@router.get("/requests/{request_id}/payments", response_model=dict)
async def list_payments(
    request_id: str,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin)
):
    payments = PaymentService.list_payments(db, request_id)
    return success_response(data=[_payment(p) for p in payments])


@router.post("/requests/{request_id}/payments", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_payment(
    request_id: str,
    data: PaymentCreate,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """
    Record a fee payment

    - **payment_type**: agency_fee (step 3) or grading_fee (step 5)
    - **amount**: positive amount
    """
    payment = PaymentService.create_payment(
        db,
        request_id,
        data.payment_type.value,
        data.amount,
        payment_method=data.payment_method,
        notes=data.notes,
    )
    audit.record(admin.email, "payment.create", request_id, {"payment_id": payment.id, "amount": data.amount})
    return success_response(data=_payment(payment), message="Payment recorded")


@router.patch("/payments/{payment_id}", response_model=dict)
async def update_payment(
    payment_id: int,
    data: PaymentStatusUpdate,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
    audit: AuditLogger = Depends(get_audit_logger)
):
    payment = PaymentService.update_payment_status(db, payment_id, data.status.value)
    audit.record(admin.email, "payment.status", payment_id, {"status": data.status.value})
    return success_response(data=_payment(payment))
