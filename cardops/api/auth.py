"""
Admin authentication API endpoints
"""
from fastapi import APIRouter, HTTPException, status
import logging

from cardops.core.config import settings
from cardops.core.security import create_access_token, verify_password
from cardops.schemas.auth import AdminLogin
from cardops.schemas.common import TokenResponse
from cardops.utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=dict)
async def login(credentials: AdminLogin):
    """
    Admin login

    - **email**: Must match ADMIN_EMAIL
    - **password**: Checked against ADMIN_PASSWORD_HASH

    Returns a bearer token for the admin endpoints
    """
    email_ok = credentials.email.strip().lower() == settings.ADMIN_EMAIL.lower()
    if not email_ok or not verify_password(credentials.password, settings.ADMIN_PASSWORD_HASH):
        logger.warning(f"Failed admin login for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    token = create_access_token({"sub": settings.ADMIN_EMAIL, "role": "admin"})
    token_response = TokenResponse(
        access_token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return success_response(data=token_response.model_dump(), message="Login successful")
