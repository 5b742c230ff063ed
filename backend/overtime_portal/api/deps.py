# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header

from overtime_portal.exceptions import AppError, unauthorized
from overtime_portal.models.enums import Role
from overtime_portal.schemas.auth import AuthContext
from overtime_portal.schemas.order import EMAIL_PATTERN
from overtime_portal.workflow import has_view_access


async def get_auth_context(
    x_user_email: str = Header(pattern=EMAIL_PATTERN),
    x_user_roles: str = Header(default=""),
) -> AuthContext:
    """Read the resolved session (e-mail and comma-separated roles) from request headers."""
    roles = [role.strip() for role in x_user_roles.split(",") if role.strip()]
    return AuthContext(email=x_user_email.strip().lower(), roles=roles)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_view_access(auth: AuthDep) -> AuthContext:
    """Require a role that may browse every order."""
    if not has_view_access(auth.actor):
        raise AppError("Forbidden", status_code=403)
    return auth


ViewerDep = Annotated[AuthContext, Depends(require_view_access)]


async def require_admin_or_hr(auth: AuthDep) -> AuthContext:
    """Require admin or HR role for the request."""
    if not auth.actor.has_any([Role.ADMIN, Role.HR]):
        raise unauthorized()
    return auth


AdminOrHRDep = Annotated[AuthContext, Depends(require_admin_or_hr)]
