# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from hrms.models.enums import Role


class AuthContext(BaseModel):
    """Caller identity supplied by the upstream gateway for every request."""

    tenant_id: uuid.UUID
    user_id: uuid.UUID
    role: Role = Role.EMPLOYEE

    @property
    def is_reviewer(self) -> bool:
        return self.role in (Role.MANAGER, Role.ADMIN)
