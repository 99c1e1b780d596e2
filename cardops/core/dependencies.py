"""
FastAPI dependencies for authentication and collaborators
"""
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from cardops.core.security import decode_token
from cardops.services.audit_service import AuditLogger
from cardops.services.notification_service import Notifier

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


@dataclass
class AdminUser:
    email: str
    role: str = "admin"


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AdminUser:
    """
    Dependency to get the authenticated admin from the JWT bearer token

    Raises:
        HTTPException: 401 if the token is missing, 403 if invalid or not an admin
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)
    if not payload or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid token",
        )

    if payload.get("role") != "admin" or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )

    return AdminUser(email=payload["sub"], role=payload["role"])


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_audit_logger(request: Request) -> AuditLogger:
    return request.app.state.audit_logger
