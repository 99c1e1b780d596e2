"""
Message Service
Admin/customer message thread, optionally tied to a request.
"""
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from cardops.core.database import transaction
from cardops.core.exceptions import NotFound, ValidationError
from cardops.models.grading_request import GradingRequest
from cardops.models.message import Message
from cardops.utils.dates import utcnow

logger = logging.getLogger(__name__)

ADMIN_PARTY = "admin"


class MessageService:
    """Service for message operations"""

    @staticmethod
    def create_message(
        db: Session,
        recipient: str,
        body: str,
        sender: str = ADMIN_PARTY,
        request_id: Optional[str] = None
    ) -> Message:
        """
        Append a message to the thread

        Raises:
            ValidationError: Empty body, sender or recipient
            NotFound: request_id given but unknown
        """
        if not (body or "").strip():
            raise ValidationError("Message body is required")
        if not (sender or "").strip() or not (recipient or "").strip():
            raise ValidationError("Sender and recipient are required")

        with transaction(db):
            if request_id is not None:
                exists = db.query(GradingRequest.id).filter(GradingRequest.id == request_id).first()
                if not exists:
                    raise NotFound(f"Request {request_id} not found")

            message = Message(
                request_id=request_id,
                sender=sender.strip(),
                recipient=recipient.strip(),
                body=body,
                is_read=False,
                created_at=utcnow(),
            )
            db.add(message)

        logger.info(f"Message {message.id} from {message.sender} to {message.recipient}")
        return message

    @staticmethod
    def list_messages(db: Session, request_id: Optional[str] = None) -> List[Message]:
        """Messages oldest first, optionally limited to one request"""
        query = db.query(Message)
        if request_id is not None:
            query = query.filter(Message.request_id == request_id)
        return query.order_by(Message.created_at.asc(), Message.id.asc()).all()

    @staticmethod
    def mark_read(db: Session, message_id: int) -> Message:
        with transaction(db):
            message = db.query(Message).filter(Message.id == message_id).first()
            if message is None:
                raise NotFound(f"Message {message_id} not found")
            message.is_read = True
        return message

    @staticmethod
    def mark_request_read(db: Session, request_id: str, reader: str = ADMIN_PARTY) -> int:
        """
        Mark every message on a request not sent by ``reader`` as read

        Returns:
            Number of messages updated
        """
        with transaction(db):
            exists = db.query(GradingRequest.id).filter(GradingRequest.id == request_id).first()
            if not exists:
                raise NotFound(f"Request {request_id} not found")

            updated = db.query(Message).filter(
                Message.request_id == request_id,
                Message.sender != reader,
                Message.is_read.is_(False)
            ).update({Message.is_read: True}, synchronize_session="fetch")

        logger.info(f"Marked {updated} message(s) read on request {request_id}")
        return updated

    @staticmethod
    def unread_count(db: Session, recipient: str = ADMIN_PARTY) -> int:
        return db.query(Message).filter(
            Message.recipient == recipient,
            Message.is_read.is_(False)
        ).count()
