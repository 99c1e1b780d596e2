"""
Request Service
Creates grading requests and assembles the request aggregate
(request + owner + cards + steps + step details) for the API.
"""
from sqlalchemy.orm import Session, selectinload, joinedload
from typing import List, Optional, Tuple
import logging
import re
import uuid

from cardops.core.database import transaction
from cardops.core.exceptions import NotFound, StorageError, ValidationError
from cardops.models.grading_request import GradingRequest, Card, RequestStatus
from cardops.models.user import User
from cardops.schemas.grading_request import (
    GradingRequestCreate,
    PublicProgressResponse,
    PublicStepResponse,
)
from cardops.services.progress_service import ProgressService
from cardops.utils.dates import utcnow
from cardops.utils.pagination import paginate

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class RequestService:
    """Service for grading request operations"""

    @staticmethod
    def validate_submission(data: GradingRequestCreate) -> None:
        email = normalize_email(data.customer.email)
        if not email:
            raise ValidationError("Customer email is required")
        if not EMAIL_PATTERN.match(email):
            raise ValidationError(f"Invalid email address: {data.customer.email}")
        if not (data.country or data.plan_type):
            raise ValidationError("Either country or plan_type is required")

    @staticmethod
    def find_or_create_user(
        db: Session,
        email: str,
        name: Optional[str] = None,
        phone: Optional[str] = None
    ) -> User:
        """
        Find user by email, creating it if absent

        The new user is committed on its own, so it survives a request
        creation that fails afterwards.
        """
        email = normalize_email(email)
        user = db.query(User).filter(User.email == email).first()
        if user:
            return user

        now = utcnow()
        try:
            with transaction(db):
                user = User(email=email, name=name, phone=phone, created_at=now, updated_at=now)
                db.add(user)
        except StorageError:
            # Lost a race against another submission with the same email
            user = db.query(User).filter(User.email == email).first()
            if user is None:
                raise
            return user

        logger.info(f"Created user {user.id} for {email}")
        return user

    @staticmethod
    def create_request(db: Session, data: GradingRequestCreate) -> GradingRequest:
        """
        Create a grading request with its cards and the six initial steps

        Args:
            db: Database session
            data: Submission payload

        Returns:
            The created request aggregate

        Raises:
            ValidationError: Missing email, or neither country nor plan_type
            StorageError: Commit failed; no request, card or step row is kept
        """
        RequestService.validate_submission(data)

        user = RequestService.find_or_create_user(
            db,
            email=data.customer.email,
            name=data.customer.name,
            phone=data.customer.phone,
        )

        total_declared = data.total_declared_value
        if total_declared is None:
            total_declared = sum(card.declared_value for card in data.cards)
        total_fee = data.total_estimated_grading_fee
        if total_fee is None:
            total_fee = sum(card.estimated_grading_fee for card in data.cards)

        now = utcnow()
        request_id = str(uuid.uuid4())

        with transaction(db):
            request = GradingRequest(
                id=request_id,
                user_id=user.id,
                status=RequestStatus.PENDING.value,
                current_step=1,
                country=data.country,
                plan_type=data.plan_type,
                service_type=data.service_type or "psa-grading",
                total_declared_value=total_declared,
                total_estimated_grading_fee=total_fee,
                customer_notes=data.customer_notes,
                created_at=now,
                updated_at=now,
            )
            db.add(request)

            for position, card in enumerate(data.cards):
                request.cards.append(Card(
                    position=position,
                    card_name=card.card_name,
                    declared_value=card.declared_value,
                    estimated_grading_fee=card.estimated_grading_fee,
                    created_at=now,
                ))

            ProgressService.initialize_steps(db, request, now)

        logger.info(f"Created request {request_id} for user {user.id} with {len(data.cards)} card(s)")
        return RequestService.get_request_aggregate(db, request_id)

    @staticmethod
    def get_request_aggregate(db: Session, request_id: str) -> GradingRequest:
        """
        Load a request with owner, cards (creation order), steps (1-6) and details

        Raises:
            NotFound: Unknown request ID
        """
        request = db.query(GradingRequest).options(
            joinedload(GradingRequest.user),
            selectinload(GradingRequest.cards),
            selectinload(GradingRequest.steps),
            selectinload(GradingRequest.step_details),
        ).filter(GradingRequest.id == request_id).populate_existing().first()

        if request is None:
            raise NotFound(f"Request {request_id} not found")
        return request

    @staticmethod
    def list_requests(
        db: Session,
        status: Optional[str] = None,
        page: int = 1,
        per_page: Optional[int] = None
    ) -> Tuple[List[GradingRequest], int]:
        """Admin listing, newest first"""
        query = db.query(GradingRequest).options(
            joinedload(GradingRequest.user),
            selectinload(GradingRequest.cards),
            selectinload(GradingRequest.steps),
            selectinload(GradingRequest.step_details),
        )
        if status:
            query = query.filter(GradingRequest.status == status)
        query = query.order_by(GradingRequest.created_at.desc())
        return paginate(query, page, per_page)

    @staticmethod
    def list_user_requests(db: Session, email: str) -> List[GradingRequest]:
        user = db.query(User).filter(User.email == normalize_email(email)).first()
        if user is None:
            return []
        return db.query(GradingRequest).options(
            selectinload(GradingRequest.cards),
            selectinload(GradingRequest.steps),
        ).filter(
            GradingRequest.user_id == user.id
        ).order_by(GradingRequest.created_at.desc()).all()

    @staticmethod
    def update_request_status(
        db: Session,
        request_id: str,
        status: str,
        admin_notes: Optional[str] = None
    ) -> GradingRequest:
        """
        Set the aggregate status of a request (and optionally admin notes)

        Does not touch steps or the current step pointer.
        """
        try:
            status = RequestStatus(status).value
        except ValueError:
            allowed = ", ".join(s.value for s in RequestStatus)
            raise ValidationError(f"Invalid request status '{status}'. Allowed: {allowed}")

        with transaction(db):
            request = db.query(GradingRequest).filter(GradingRequest.id == request_id).first()
            if request is None:
                raise NotFound(f"Request {request_id} not found")
            request.status = status
            if admin_notes is not None:
                request.admin_notes = admin_notes
            request.updated_at = utcnow()

        logger.info(f"Request {request_id} status set to {status}")
        return RequestService.get_request_aggregate(db, request_id)

    @staticmethod
    def update_user(
        db: Session,
        user_id: int,
        name: Optional[str] = None,
        phone: Optional[str] = None
    ) -> User:
        """Edit a user's name and/or phone. Email is the identity and never changes."""
        with transaction(db):
            user = db.query(User).filter(User.id == user_id).first()
            if user is None:
                raise NotFound(f"User {user_id} not found")
            if name is not None:
                user.name = name
            if phone is not None:
                user.phone = phone
            user.updated_at = utcnow()
        return user

    @staticmethod
    def get_public_progress(db: Session, request_id: str) -> PublicProgressResponse:
        """Progress view for the unauthenticated lookup page"""
        request = RequestService.get_request_aggregate(db, request_id)
        if request.status == RequestStatus.DELETED.value:
            raise NotFound(f"Request {request_id} not found")

        return PublicProgressResponse(
            id=request.id,
            status=request.status,
            current_step=request.current_step,
            created_at=request.created_at,
            customer_name=request.user.name if request.user else None,
            steps=[PublicStepResponse.model_validate(step) for step in request.steps],
        )
