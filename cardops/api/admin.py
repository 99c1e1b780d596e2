"""
Admin dashboard API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cardops.core.database import get_db
from cardops.core.dependencies import AdminUser, get_current_admin
from cardops.services.audit_service import AuditLogger
from cardops.services.statistics_service import StatisticsService
from cardops.utils.responses import success_response

router = APIRouter()


@router.get("/statistics", response_model=dict)
async def get_statistics(
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin)
):
    """Request, user, approval and message counters"""
    return success_response(data=StatisticsService.get_statistics(db))


@router.get("/admin-logs", response_model=dict)
async def list_admin_logs(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin)
):
    entries = AuditLogger.recent(db, limit)
    return success_response(data=[
        {
            "id": entry.id,
            "admin_user": entry.admin_user,
            "action": entry.action,
            "target_id": entry.target_id,
            "details": entry.details,
            "created_at": entry.created_at.isoformat(),
        }
        for entry in entries
    ])
