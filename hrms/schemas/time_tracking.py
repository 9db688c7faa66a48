# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel


class TimeTrackingSessionResponse(BaseModel):
    """A single clock-in to clock-out session as persisted."""

    id: uuid.UUID
    user_id: uuid.UUID
    date: date
    clock_in_time: datetime
    clock_out_time: datetime | None
    break_in_time: datetime | None
    break_out_time: datetime | None
    total_work_hours: float
    total_break_hours: float


class TodayStatusResponse(BaseModel):
    """Today's totals including a live, non-persisted projection of the open session."""

    clocked_in: bool
    clocked_out: bool
    on_break: bool
    clock_in_time: datetime | None
    clock_out_time: datetime | None
    break_in_time: datetime | None
    break_out_time: datetime | None
    total_work_hours: float
    total_break_hours: float
    sessions_count: int


class AttendanceDayResponse(BaseModel):
    """Sessions of one calendar day folded together."""

    date: date
    clock_in_time: datetime | None
    clock_out_time: datetime | None  # None while any session of the day is open
    total_work_hours: float
    total_break_hours: float


class AttendanceListResponse(BaseModel):
    items: list[AttendanceDayResponse]
    total: int
