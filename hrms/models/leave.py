# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from hrms.models.base import TimestampMixin, UUIDBase
from hrms.models.enums import LeaveStatus


class Leave(UUIDBase, TimestampMixin, table=True):
    """A leave application and its review state."""

    __tablename__ = "leaves"
    __table_args__ = (
        sa.Index("ix_leave_tenant_status", "tenant_id", "status"),
        sa.Index("ix_leave_tenant_user", "tenant_id", "user_id"),
    )

    tenant_id: uuid.UUID = Field(index=True)
    user_id: uuid.UUID
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_types.id"), nullable=False, index=True),
    )
    start_date: date
    end_date: date
    total_days: float
    reason: str | None = None
    status: str = Field(default=LeaveStatus.PENDING, max_length=20, sa_column_kwargs={"server_default": "pending"})
    applied_by: uuid.UUID
    approved_by: uuid.UUID | None = None
    approved_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    rejected_by: uuid.UUID | None = None
    rejected_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    rejection_reason: str | None = None
