# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field

from hrms.models.base import TimestampMixin, UUIDBase

_OPEN_SESSION = sa.text("clock_out_time IS NULL")


class TimeTrackingSession(UUIDBase, TimestampMixin, table=True):
    """One clock-in to clock-out interval. A user may have several per day."""

    __tablename__ = "time_tracking"
    __table_args__ = (
        sa.Index("ix_time_tracking_user_date", "user_id", "date"),
        # At most one open session per user and day.
        sa.Index(
            "uq_time_tracking_open_session",
            "user_id",
            "date",
            unique=True,
            postgresql_where=_OPEN_SESSION,
            sqlite_where=_OPEN_SESSION,
        ),
    )

    tenant_id: uuid.UUID = Field(index=True)
    user_id: uuid.UUID
    date: datetime.date
    clock_in_time: datetime.datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    clock_out_time: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    break_in_time: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    break_out_time: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    total_work_hours: float = Field(default=0, sa_column_kwargs={"server_default": "0"})
    total_break_hours: float = Field(default=0, sa_column_kwargs={"server_default": "0"})
