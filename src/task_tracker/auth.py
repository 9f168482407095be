from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .models import CurrentUser
from .settings import get_settings

_security = HTTPBasic(auto_error=False)


# PUBLIC_INTERFACE
def get_basic_auth_dependency():
    """
    Return a FastAPI dependency callable that enforces HTTP Basic Auth only when
    ENABLE_BASIC_AUTH is enabled in settings. When disabled, the dependency is a no-op.

    This gates the service as a whole; the acting user is resolved separately
    by get_current_user.
    """
    settings = get_settings()

    if not settings.enable_basic_auth:
        async def _noop() -> None:  # noqa: D401 - trivial
            """No-op dependency (auth disabled)."""
            return None

        return _noop

    expected_user: Optional[str] = settings.basic_auth_username
    expected_pass: Optional[str] = settings.basic_auth_password

    async def _enforce(creds: Optional[HTTPBasicCredentials] = Depends(_security)) -> None:
        """
        Enforce HTTP Basic authentication when enabled.

        Raises:
            HTTPException(401) if credentials are missing or invalid.
        """
        if creds is None or creds.username is None or creds.password is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
                headers={"WWW-Authenticate": "Basic"},
            )

        if expected_user is None or expected_pass is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Server authentication not configured",
                headers={"WWW-Authenticate": "Basic"},
            )

        if not (creds.username == expected_user and creds.password == expected_pass):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication credentials",
                headers={"WWW-Authenticate": "Basic"},
            )

    return _enforce


# PUBLIC_INTERFACE
async def get_current_user(
    x_user_id: Optional[str] = Header(default=None, description="Authenticated user id set by the gateway"),
    x_user_email: Optional[str] = Header(default=None, description="Email of the authenticated user"),
) -> CurrentUser:
    """
    Resolve the acting user from the identity headers forwarded by the
    authenticating gateway in front of this service.

    Raises:
        HTTPException(401) when no user id was forwarded.
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity",
        )
    email = (x_user_email or "").strip() or None
    return CurrentUser(id=user_id, email=email)
