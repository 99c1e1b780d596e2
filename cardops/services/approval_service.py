"""
Approval Service
Buyback price approvals: created by an admin, answered once by the
customer through a shareable key.
"""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from typing import List, Optional, Sequence
from datetime import datetime, timedelta
import logging
import secrets

from cardops.core.config import settings
from cardops.core.database import transaction
from cardops.core.exceptions import (
    AlreadyResponded,
    Expired,
    NotFound,
    StorageError,
    ValidationError,
)
from cardops.models.approval import Approval, ApprovalCard, ApprovalStatus
from cardops.schemas.approval import ApprovalCardCreate, CardDecision
from cardops.services.request_service import EMAIL_PATTERN
from cardops.utils.dates import utcnow

logger = logging.getLogger(__name__)

APPROVAL_KEY_BYTES = 24  # 32 URL-safe characters
MAX_KEY_ATTEMPTS = 5
CARD_DECISIONS = {"approved", "rejected"}

# Marker for "use APPROVAL_EXPIRATION_HOURS"; None already means no deadline
DEFAULT_EXPIRATION = object()


def generate_approval_key() -> str:
    return secrets.token_urlsafe(APPROVAL_KEY_BYTES)


class ApprovalService:
    """Service for buyback approval operations"""

    @staticmethod
    def create_approval(
        db: Session,
        customer_name: str,
        customer_email: str,
        cards: Sequence[ApprovalCardCreate],
        total_price: Optional[float] = None,
        expiration_hours: Optional[float] = DEFAULT_EXPIRATION,
        notes: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Approval:
        """
        Create a pending approval with one pending row per card

        Args:
            db: Database session
            customer_name: Customer display name
            customer_email: Where the approval link is sent
            cards: Cards offered for buyback
            total_price: Offer total, defaults to the sum of card prices
            expiration_hours: Link lifetime; None means no deadline,
                omitted means APPROVAL_EXPIRATION_HOURS
            notes: Free text shown to the customer

        Returns:
            Created Approval with its cards
        """
        if not (customer_name or "").strip():
            raise ValidationError("Customer name is required")
        if not EMAIL_PATTERN.match((customer_email or "").strip()):
            raise ValidationError(f"Invalid customer email: {customer_email}")
        if not cards:
            raise ValidationError("At least one card is required")

        now = now or utcnow()
        if expiration_hours is DEFAULT_EXPIRATION:
            expiration_hours = settings.APPROVAL_EXPIRATION_HOURS
        if total_price is None:
            total_price = sum(card.price for card in cards)
        expires_at = now + timedelta(hours=expiration_hours) if expiration_hours is not None else None

        for attempt in range(1, MAX_KEY_ATTEMPTS + 1):
            approval_key = generate_approval_key()
            taken = db.query(Approval.id).filter(Approval.approval_key == approval_key).first()
            if taken:
                logger.warning(f"Approval key collision (attempt {attempt}), regenerating")
                continue

            try:
                with transaction(db):
                    approval = Approval(
                        approval_key=approval_key,
                        customer_name=customer_name.strip(),
                        customer_email=customer_email.strip(),
                        total_price=total_price,
                        status=ApprovalStatus.PENDING.value,
                        notes=notes,
                        expires_at=expires_at,
                        created_at=now,
                        updated_at=now,
                    )
                    for card in cards:
                        approval.cards.append(ApprovalCard(
                            card_name=card.card_name,
                            grade=card.grade,
                            price=card.price,
                            status=ApprovalStatus.PENDING.value,
                        ))
                    db.add(approval)
            except StorageError as e:
                if isinstance(e.__cause__, IntegrityError):
                    # Key inserted concurrently between the check and the commit
                    logger.warning(f"Approval key collision on insert (attempt {attempt}), regenerating")
                    continue
                raise

            logger.info(f"Created approval {approval.id} for {customer_email} with {len(cards)} card(s)")
            return ApprovalService.get_approval(db, approval_key)

        raise StorageError("Could not generate a unique approval key")

    @staticmethod
    def get_approval(db: Session, approval_key: str) -> Approval:
        approval = db.query(Approval).options(
            selectinload(Approval.cards)
        ).filter(Approval.approval_key == approval_key).populate_existing().first()
        if approval is None:
            raise NotFound("Approval not found")
        return approval

    @staticmethod
    def is_expired(approval: Approval, now: Optional[datetime] = None) -> bool:
        if approval.expires_at is None:
            return False
        return (now or utcnow()) > approval.expires_at

    @staticmethod
    def get_public_approval(
        db: Session,
        approval_key: str,
        now: Optional[datetime] = None
    ) -> Approval:
        """Customer view of an approval; a pending approval past its deadline is Expired"""
        approval = ApprovalService.get_approval(db, approval_key)
        if not approval.is_terminal and ApprovalService.is_expired(approval, now):
            raise Expired("This approval link has expired")
        return approval

    @staticmethod
    def list_approvals(db: Session, status: Optional[str] = None) -> List[Approval]:
        query = db.query(Approval).options(selectinload(Approval.cards))
        if status:
            query = query.filter(Approval.status == status)
        return query.order_by(Approval.created_at.desc(), Approval.id.desc()).all()

    @staticmethod
    def record_customer_response(
        db: Session,
        approval_key: str,
        decisions: Sequence[CardDecision],
        comment: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Approval:
        """
        Record the customer's answer to an approval

        Each decision is matched to a card by name; names that match no card
        are skipped. The approval and all matched cards are updated in one
        transaction.

        Raises:
            NotFound: Unknown key
            AlreadyResponded: The approval was already answered
            Expired: The approval deadline has passed
            ValidationError: Unknown decision value
        """
        for decision in decisions:
            if decision.decision not in CARD_DECISIONS:
                raise ValidationError(f"Invalid decision '{decision.decision}' for {decision.card_name}")

        now = now or utcnow()

        with transaction(db):
            approval = db.query(Approval).filter(
                Approval.approval_key == approval_key
            ).with_for_update().first()
            if approval is None:
                raise NotFound("Approval not found")
            if approval.is_terminal:
                raise AlreadyResponded("This approval has already been answered")
            if ApprovalService.is_expired(approval, now):
                raise Expired("This approval link has expired")

            approval.status = ApprovalStatus.SUBMITTED.value
            approval.responded_at = now
            approval.updated_at = now
            approval.customer_comment = comment

            answered = set()
            for decision in decisions:
                card = next(
                    (c for c in approval.cards if c.card_name == decision.card_name and c.id not in answered),
                    None
                )
                if card is None:
                    logger.info(f"Approval {approval.id}: no card named '{decision.card_name}', skipped")
                    continue
                card.customer_decision = decision.decision
                card.customer_comment = decision.comment
                answered.add(card.id)

        logger.info(f"Approval {approval.id} answered ({len(answered)} card decision(s))")
        return ApprovalService.get_approval(db, approval_key)
