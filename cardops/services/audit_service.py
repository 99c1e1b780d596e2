"""
Audit logger for admin actions
"""
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
import logging

from cardops.core.database import Database
from cardops.models.admin_log import AdminLog
from cardops.utils.dates import utcnow

logger = logging.getLogger(__name__)


class AuditLogger:
    """
    Writes AdminLog rows in a session of its own, so an audit failure never
    touches the caller's transaction.
    """

    def __init__(self, database: Database):
        self.database = database

    def record(
        self,
        actor: str,
        action: str,
        target_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> bool:
        try:
            with self.database.session_scope() as db:
                db.add(AdminLog(
                    admin_user=actor,
                    action=action,
                    target_id=str(target_id) if target_id is not None else None,
                    details=details,
                    created_at=utcnow(),
                ))
                db.commit()
        except Exception as e:
            logger.error(f"Failed to record admin log {action} on {target_id}: {e}")
            return False
        return True

    @staticmethod
    def recent(db: Session, limit: int = 100) -> List[AdminLog]:
        return db.query(AdminLog).order_by(
            AdminLog.created_at.desc(), AdminLog.id.desc()
        ).limit(limit).all()
