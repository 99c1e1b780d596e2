"""
Statistics Service
Dashboard counters for the admin panel.
"""
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Any, Dict
import logging

from cardops.models.approval import Approval, ApprovalStatus
from cardops.models.grading_request import GradingRequest, RequestStatus
from cardops.models.user import User
from cardops.services.message_service import MessageService

logger = logging.getLogger(__name__)


class StatisticsService:

    @staticmethod
    def _count_by(db: Session, column) -> Dict[str, int]:
        rows = db.query(column, func.count(GradingRequest.id)).filter(
            GradingRequest.status != RequestStatus.DELETED.value
        ).group_by(column).all()
        return {(key if key is not None else "unknown"): count for key, count in rows}

    @staticmethod
    def get_statistics(db: Session) -> Dict[str, Any]:
        """
        Aggregate counters

        Deleted requests are left out of the request counters.
        """
        by_status = {
            key: count
            for key, count in db.query(
                GradingRequest.status, func.count(GradingRequest.id)
            ).group_by(GradingRequest.status).all()
        }
        total_requests = sum(
            count for key, count in by_status.items() if key != RequestStatus.DELETED.value
        )

        return {
            "total_users": db.query(func.count(User.id)).scalar() or 0,
            "total_requests": total_requests,
            "requests_by_status": by_status,
            "requests_by_country": StatisticsService._count_by(db, GradingRequest.country),
            "requests_by_plan": StatisticsService._count_by(db, GradingRequest.plan_type),
            "pending_approvals": db.query(func.count(Approval.id)).filter(
                Approval.status == ApprovalStatus.PENDING.value
            ).scalar() or 0,
            "unread_messages": MessageService.unread_count(db),
        }
