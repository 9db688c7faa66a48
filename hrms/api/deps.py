# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header

from hrms.exceptions import Forbidden
from hrms.models.enums import Role
from hrms.schemas.auth import AuthContext
from hrms.services.clock import Clock, get_clock


async def get_auth_context(
    x_tenant_id: uuid.UUID = Header(),
    x_user_id: uuid.UUID = Header(),
    x_role: Role = Header(default=Role.EMPLOYEE),
) -> AuthContext:
    """Build the caller identity from the headers set by the authenticating gateway."""
    return AuthContext(tenant_id=x_tenant_id, user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_reviewer(
    auth: AuthDep,
) -> AuthContext:
    """Require a role allowed to review leaves (manager or admin)."""
    if not auth.is_reviewer:
        raise Forbidden("Reviewer access required")
    return auth


ReviewerDep = Annotated[AuthContext, Depends(require_reviewer)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if auth.role != Role.ADMIN:
        raise Forbidden("Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]

ClockDep = Annotated[Clock, Depends(get_clock)]
