# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query

from hrms.api.deps import AuthDep, ClockDep
from hrms.config import get_settings
from hrms.db import SessionDep
from hrms.schemas.time_tracking import (
    AttendanceListResponse,
    TimeTrackingSessionResponse,
    TodayStatusResponse,
)
from hrms.services import time_tracking as time_tracking_service

time_tracking_router = APIRouter(prefix="/time-tracking", tags=["time-tracking"])


@time_tracking_router.post("/clock-in", response_model=TimeTrackingSessionResponse)
async def clock_in(session: SessionDep, auth: AuthDep, clock: ClockDep) -> TimeTrackingSessionResponse:
    """Start a new work session."""
    return await time_tracking_service.clock_in(session, auth, clock)


@time_tracking_router.post("/clock-out", response_model=TimeTrackingSessionResponse)
async def clock_out(session: SessionDep, auth: AuthDep, clock: ClockDep) -> TimeTrackingSessionResponse:
    """Close the open work session."""
    return await time_tracking_service.clock_out(session, auth, clock)


@time_tracking_router.post("/break-in", response_model=TimeTrackingSessionResponse)
async def break_in(session: SessionDep, auth: AuthDep, clock: ClockDep) -> TimeTrackingSessionResponse:
    """Start a break in the open session."""
    return await time_tracking_service.break_in(session, auth, clock)


@time_tracking_router.post("/break-out", response_model=TimeTrackingSessionResponse)
async def break_out(session: SessionDep, auth: AuthDep, clock: ClockDep) -> TimeTrackingSessionResponse:
    """End the current break."""
    return await time_tracking_service.break_out(session, auth, clock)


@time_tracking_router.get("/today", response_model=TodayStatusResponse)
async def get_today_status(session: SessionDep, auth: AuthDep, clock: ClockDep) -> TodayStatusResponse:
    """Today's clock state and totals, including the live open session."""
    return await time_tracking_service.get_today_status(session, auth, clock)


@time_tracking_router.get("/attendance", response_model=AttendanceListResponse)
async def get_attendance(
    session: SessionDep,
    auth: AuthDep,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> AttendanceListResponse:
    """Daily attendance history of the caller."""
    settings = get_settings()
    return await time_tracking_service.get_attendance(
        session, auth, start_date, end_date, limit=settings.attendance_history_limit
    )
