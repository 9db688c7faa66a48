# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CreateLeaveTypeRequest(BaseModel):
    """Request body for adding a leave type to the tenant catalog."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    max_days: float = Field(ge=0)
    is_paid: bool = True
    requires_approval: bool = True


class LeaveTypeResponse(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    name: str
    description: str | None
    max_days: float
    is_paid: bool
    requires_approval: bool
    is_active: bool
    created_at: datetime


class LeaveTypeListResponse(BaseModel):
    items: list[LeaveTypeResponse]
    total: int
