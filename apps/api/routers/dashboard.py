"""Dashboard login router."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from routers.rate_limit import rate_limit
from routers.auth_scope import dashboard_password_matches
from services.session_token import create_session_token

router = APIRouter()
logger = logging.getLogger(__name__)


class DashboardLoginRequest(BaseModel):
    password: Optional[str] = None


@router.post("/session")
async def create_dashboard_session(
    request: DashboardLoginRequest,
    _rate_limit: None = Depends(rate_limit("dashboard_login", limit=20, window_seconds=900)),
):
    """Exchange the dashboard password for a signed session token."""
    if not dashboard_password_matches(request.password):
        logger.warning("Rejected dashboard login attempt")
        raise HTTPException(status_code=401, detail="Incorrect password")
    return create_session_token()
