"""
Grading requests API endpoints
Customer submission and the admin progress console
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from cardops.core.config import settings
from cardops.core.database import get_db
from cardops.core.dependencies import AdminUser, get_audit_logger, get_current_admin, get_notifier
from cardops.schemas.grading_request import (
    GradingRequestCreate,
    RequestAggregateResponse,
    RequestStatusUpdate,
    UserResponse,
    UserUpdate,
)
from cardops.schemas.progress import HistoryResponse, StepUpdate
from cardops.services.audit_service import AuditLogger
from cardops.services.notification_service import (
    Notifier,
    build_request_received,
    build_step_updated,
    deliver,
)
from cardops.services.progress_service import ProgressService
from cardops.services.request_service import RequestService
from cardops.utils.pagination import get_pagination_params
from cardops.utils.responses import paginated_response, success_response

router = APIRouter()


def _aggregate(request) -> dict:
    return RequestAggregateResponse.model_validate(request).model_dump(mode="json")


@router.post("/requests", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_request(
    data: GradingRequestCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Submit a grading request

    - **customer**: email (required), name, phone
    - **country** / **plan_type**: at least one is required
    - **cards**: cards to grade, in display order

    Returns the request with its six progress steps
    """
    request = RequestService.create_request(db, data)

    email = build_request_received(
        recipient=request.user.email,
        customer_name=request.user.name,
        request_id=request.id,
        card_count=len(request.cards),
        base_url=settings.BASE_URL,
    )
    background_tasks.add_task(deliver, notifier, email)

    return success_response(data=_aggregate(request), message="Request received")


@router.get("/requests", response_model=dict)
async def list_requests(
    status_filter: Optional[str] = Query(None, alias="status"),
    email: Optional[str] = Query(None, description="Only requests of this customer"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin)
):
    """List requests, newest first"""
    if email:
        items = RequestService.list_user_requests(db, email)
        if status_filter:
            items = [item for item in items if item.status == status_filter]
        page, per_page = get_pagination_params(page, per_page)
        total = len(items)
        items = items[(page - 1) * per_page:page * per_page]
        return paginated_response([_aggregate(item) for item in items], page, per_page, total)

    page, per_page = get_pagination_params(page, per_page)
    items, total = RequestService.list_requests(db, status_filter, page, per_page)
    return paginated_response([_aggregate(item) for item in items], page, per_page, total)


@router.get("/requests/{request_id}", response_model=dict)
async def get_request(
    request_id: str,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin)
):
    """Request aggregate: owner, cards, steps and step details"""
    return success_response(data=_aggregate(RequestService.get_request_aggregate(db, request_id)))


@router.patch("/requests/{request_id}/status", response_model=dict)
async def update_request_status(
    request_id: str,
    data: RequestStatusUpdate,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """Set the request's overall status"""
    request = RequestService.update_request_status(db, request_id, data.status, data.admin_notes)
    audit.record(admin.email, "request.status", request_id, {"status": data.status})
    return success_response(data=_aggregate(request), message="Status updated")


@router.put("/requests/{request_id}/step/{step_number}", response_model=dict)
@router.patch("/requests/{request_id}/step/{step_number}", response_model=dict)
async def update_step(
    request_id: str,
    step_number: int,
    data: StepUpdate,
    background_tasks: BackgroundTasks,
    notify_customer: bool = Query(False, description="Email the customer about this update"),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
    notifier: Notifier = Depends(get_notifier),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """
    Move a request to a step

    - **status**: pending / current / completed (default current)
    - **notes**: step notes, cleared when omitted
    - any other field (or **detail**) is stored as the step's detail payload

    The request's current step becomes **step_number**.
    """
    ProgressService.apply_step_transition(
        db,
        request_id,
        step_number,
        status=data.status,
        notes=data.notes,
        detail=data.detail_payload(),
        actor=admin.email,
    )
    request = RequestService.get_request_aggregate(db, request_id)
    step = next(s for s in request.steps if s.step_number == step_number)

    audit.record(
        admin.email,
        "request.step",
        request_id,
        {"step_number": step_number, "status": step.status},
    )
    if notify_customer:
        email = build_step_updated(
            recipient=request.user.email,
            customer_name=request.user.name,
            request_id=request.id,
            step_number=step_number,
            status=step.status,
            notes=step.notes,
            base_url=settings.BASE_URL,
        )
        background_tasks.add_task(deliver, notifier, email)

    return success_response(data=_aggregate(request), message="Step updated")


@router.get("/requests/{request_id}/history", response_model=dict)
async def get_history(
    request_id: str,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin)
):
    """Step status changes, newest first"""
    history = ProgressService.get_step_history(db, request_id)
    return success_response(
        data=[HistoryResponse.model_validate(entry).model_dump(mode="json") for entry in history]
    )


@router.patch("/users/{user_id}", response_model=dict)
async def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """Edit a customer's name or phone"""
    user = RequestService.update_user(db, user_id, name=data.name, phone=data.phone)
    audit.record(admin.email, "user.update", user_id, data.model_dump(exclude_none=True))
    return success_response(data=UserResponse.model_validate(user).model_dump(mode="json"))
