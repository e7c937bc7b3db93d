from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .dependencies import get_user_service
from .services import UserService

logger = logging.getLogger(__name__)

_security = HTTPBasic(auto_error=False)


# PUBLIC_INTERFACE
def require_admin(
    request: Request,
    creds: Optional[HTTPBasicCredentials] = Depends(_security),
    users: UserService = Depends(get_user_service),
) -> None:
    """
    Dependency that restricts a route to users whose user_type is the admin role.

    Behavior:
    - If settings.enable_role_auth is False (default): does nothing.
    - If True: the HTTP Basic username is the user's email and the password is
      checked against the stored digest. Missing or invalid credentials raise 401
      with WWW-Authenticate: Basic; a valid non-admin user gets 403.

    Usage:
        @router.get("", dependencies=[Depends(require_admin)])
    """
    settings = request.app.state.settings
    if not settings.enable_role_auth:
        return None

    if creds is None or not creds.username or not creds.password:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    user = users.get_by_email(creds.username.strip().lower())
    if user is None or not users.hasher.verify(creds.password, user["password"]):
        # Same answer for unknown email and wrong password
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    if user.get("user_type") != settings.admin_role:
        logger.info("User %s denied admin route %s", user["user_id"], request.url.path)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return None
