"""
Payment Service
"""
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from cardops.core.database import transaction
from cardops.core.exceptions import NotFound, ValidationError
from cardops.models.grading_request import GradingRequest
from cardops.models.payment import Payment, PaymentStatus, PaymentType
from cardops.utils.dates import utcnow

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for request fee payments"""

    @staticmethod
    def create_payment(
        db: Session,
        request_id: str,
        payment_type: str,
        amount: float,
        payment_method: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Payment:
        """
        Record a pending payment for a request

        Raises:
            ValidationError: Unknown payment type or non-positive amount
            NotFound: Unknown request
        """
        try:
            payment_type = PaymentType(payment_type).value
        except ValueError:
            allowed = ", ".join(t.value for t in PaymentType)
            raise ValidationError(f"Invalid payment type '{payment_type}'. Allowed: {allowed}")
        if amount is None or amount <= 0:
            raise ValidationError("Payment amount must be positive")

        now = utcnow()
        with transaction(db):
            exists = db.query(GradingRequest.id).filter(GradingRequest.id == request_id).first()
            if not exists:
                raise NotFound(f"Request {request_id} not found")

            payment = Payment(
                request_id=request_id,
                payment_type=payment_type,
                amount=amount,
                status=PaymentStatus.PENDING.value,
                payment_method=payment_method,
                notes=notes,
                created_at=now,
                updated_at=now,
            )
            db.add(payment)

        logger.info(f"Payment {payment.id} ({payment_type}, {amount}) created for request {request_id}")
        return payment

    @staticmethod
    def update_payment_status(db: Session, payment_id: int, status: str) -> Payment:
        """Set payment status; moving to ``paid`` stamps the payment date"""
        try:
            status = PaymentStatus(status).value
        except ValueError:
            allowed = ", ".join(s.value for s in PaymentStatus)
            raise ValidationError(f"Invalid payment status '{status}'. Allowed: {allowed}")

        now = utcnow()
        with transaction(db):
            payment = db.query(Payment).filter(Payment.id == payment_id).first()
            if payment is None:
                raise NotFound(f"Payment {payment_id} not found")
            payment.status = status
            if status == PaymentStatus.PAID.value:
                payment.payment_date = now
            payment.updated_at = now

        logger.info(f"Payment {payment_id} status set to {status}")
        return payment

    @staticmethod
    def list_payments(db: Session, request_id: str) -> List[Payment]:
        exists = db.query(GradingRequest.id).filter(GradingRequest.id == request_id).first()
        if not exists:
            raise NotFound(f"Request {request_id} not found")
        return db.query(Payment).filter(
            Payment.request_id == request_id
        ).order_by(Payment.created_at.asc(), Payment.id.asc()).all()
