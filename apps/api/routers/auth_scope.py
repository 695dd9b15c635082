"""Authentication dependencies for the analytics dashboard."""

import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import settings
from services.session_token import decode_session_token


auth_scheme = HTTPBearer(auto_error=False)


@dataclass
class DashboardContext:
    subject: Optional[str] = None
    protected: bool = False


def dashboard_password_matches(supplied: Optional[str]) -> bool:
    """Constant-time comparison against the configured dashboard password."""
    expected = (settings.DASHBOARD_PASSWORD or "").strip()
    if not expected:
        return True
    return secrets.compare_digest(str(supplied or "").encode("utf-8"), expected.encode("utf-8"))


async def require_dashboard_session(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
) -> DashboardContext:
    """Require a dashboard Bearer token when a dashboard password is configured."""
    if not (settings.DASHBOARD_PASSWORD or "").strip():
        return DashboardContext()

    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing Bearer session token.")

    try:
        payload = decode_session_token(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    return DashboardContext(subject=str(payload.get("sub", "")), protected=True)
