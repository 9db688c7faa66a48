# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from hrms.api.deps import AuthDep, ClockDep, ReviewerDep
from hrms.db import SessionDep
from hrms.models.enums import LeaveStatus
from hrms.schemas.balance import BalanceListResponse
from hrms.schemas.leave import (
    ApplyLeavePayload,
    LeaveListResponse,
    LeaveReportResponse,
    LeaveResponse,
    RejectLeavePayload,
)
from hrms.services import balance as balance_service
from hrms.services import leave as leave_service

leaves_router = APIRouter(prefix="/leaves", tags=["leaves"])


@leaves_router.get("/balance", response_model=BalanceListResponse)
async def get_leave_balance(
    session: SessionDep,
    auth: AuthDep,
    clock: ClockDep,
    year: int | None = Query(default=None, ge=1900, le=9999),
) -> BalanceListResponse:
    """Get the caller's leave balances for a year (default: current year)."""
    return await balance_service.list_balances(session, auth, year or clock.now().year)


@leaves_router.post("/apply", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED)
async def apply_leave(
    payload: ApplyLeavePayload,
    session: SessionDep,
    auth: AuthDep,
    clock: ClockDep,
) -> LeaveResponse:
    """Apply for leave."""
    return await leave_service.apply_leave(session, auth, payload, clock)


@leaves_router.get("/my-leaves", response_model=LeaveListResponse)
async def list_my_leaves(
    session: SessionDep,
    auth: AuthDep,
) -> LeaveListResponse:
    """List the caller's own leaves."""
    return await leave_service.list_my_leaves(session, auth)


@leaves_router.get("/all", response_model=LeaveListResponse)
async def list_leaves(
    session: SessionDep,
    auth: ReviewerDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
) -> LeaveListResponse:
    """List all leaves of the tenant (reviewers only)."""
    return await leave_service.list_leaves(session, auth, status_filter)


@leaves_router.get("/report", response_model=LeaveReportResponse)
async def leave_report(
    session: SessionDep,
    auth: ReviewerDep,
    user_id: uuid.UUID | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> LeaveReportResponse:
    """Leave report with per-status summary (reviewers only)."""
    return await leave_service.leave_report(session, auth, user_id, start_date, end_date)


@leaves_router.get("/{leave_id}", response_model=LeaveResponse)
async def get_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveResponse:
    """Get a single leave."""
    return await leave_service.get_leave(session, auth, leave_id)


@leaves_router.post("/{leave_id}/approve", response_model=LeaveResponse)
async def approve_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: ReviewerDep,
    clock: ClockDep,
) -> LeaveResponse:
    """Approve a pending leave (reviewers only)."""
    return await leave_service.approve_leave(session, auth, leave_id, clock)


@leaves_router.post("/{leave_id}/reject", response_model=LeaveResponse)
async def reject_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: ReviewerDep,
    clock: ClockDep,
    payload: RejectLeavePayload | None = None,
) -> LeaveResponse:
    """Reject a pending leave (reviewers only)."""
    return await leave_service.reject_leave(session, auth, leave_id, payload, clock)


@leaves_router.post("/{leave_id}/cancel", response_model=LeaveResponse)
async def cancel_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveResponse:
    """Cancel one of the caller's own pending leaves."""
    return await leave_service.cancel_leave(session, auth, leave_id)
