# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from hrms.models.base import TimestampMixin, UUIDBase


class LeaveType(UUIDBase, TimestampMixin, table=True):
    """Tenant-scoped catalog entry describing a kind of leave and its annual cap."""

    __tablename__ = "leave_types"
    __table_args__ = (sa.UniqueConstraint("tenant_id", "name", name="uq_leave_type_tenant_name"),)

    tenant_id: uuid.UUID = Field(index=True)
    name: str = Field(max_length=255)
    description: str | None = None
    max_days: float = Field(default=0, sa_column_kwargs={"server_default": "0"})
    is_paid: bool = True
    requires_approval: bool = True
    is_active: bool = True
