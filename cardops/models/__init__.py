"""
Models package - Import all models here for easy access
"""
from cardops.models.user import User
from cardops.models.grading_request import GradingRequest, Card, RequestStatus
from cardops.models.progress import (
    ProgressStep,
    StepDetail,
    ProgressHistory,
    StepNumber,
    StepStatus,
    STEP_NAMES,
)
from cardops.models.message import Message
from cardops.models.payment import Payment, PaymentType, PaymentStatus
from cardops.models.approval import Approval, ApprovalCard, ApprovalStatus
from cardops.models.admin_log import AdminLog

__all__ = [
    # User
    "User",

    # Request aggregate
    "GradingRequest",
    "Card",
    "RequestStatus",

    # Progress
    "ProgressStep",
    "StepDetail",
    "ProgressHistory",
    "StepNumber",
    "StepStatus",
    "STEP_NAMES",

    # Messages & Payments
    "Message",
    "Payment",
    "PaymentType",
    "PaymentStatus",

    # Buyback approvals
    "Approval",
    "ApprovalCard",
    "ApprovalStatus",

    # Audit
    "AdminLog",
]
