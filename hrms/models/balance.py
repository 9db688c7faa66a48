# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from hrms.models.base import UUIDBase, utc_now


class LeaveBalance(UUIDBase, table=True):
    """Per user, leave type and year ledger of allocated, used and pending days.

    ``allocated_days >= used_days + pending_days`` holds after every leave
    transition; applications that would break it are rejected.
    """

    __tablename__ = "leave_balances"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "leave_type_id", "year", name="uq_leave_balance_user_type_year"),
    )

    tenant_id: uuid.UUID = Field(index=True)
    user_id: uuid.UUID = Field(index=True)
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_types.id"), nullable=False, index=True),
    )
    year: int
    allocated_days: float = Field(default=0, sa_column_kwargs={"server_default": "0"})
    used_days: float = Field(default=0, sa_column_kwargs={"server_default": "0"})
    pending_days: float = Field(default=0, sa_column_kwargs={"server_default": "0"})
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": utc_now},
    )
