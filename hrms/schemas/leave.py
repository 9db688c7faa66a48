# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from hrms.models.enums import LeaveStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class ApplyLeavePayload(BaseModel):
    """Request body for a new leave application.

    The date order is checked by the workflow, not here, so that an inverted
    range surfaces as ``InvalidRange`` rather than a validation error.
    """

    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=1000)


class RejectLeavePayload(BaseModel):
    rejection_reason: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveResponse(BaseModel):
    """Response schema for a single leave."""

    id: uuid.UUID
    tenant_id: uuid.UUID
    user_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    total_days: float
    reason: str | None
    status: LeaveStatus
    applied_by: uuid.UUID
    approved_by: uuid.UUID | None
    approved_at: datetime | None
    rejected_by: uuid.UUID | None
    rejected_at: datetime | None
    rejection_reason: str | None
    created_at: datetime


class LeaveListResponse(BaseModel):
    items: list[LeaveResponse]
    total: int


class LeaveReportSummary(BaseModel):
    """Counts per status plus the approved working days in the report window."""

    total: int
    pending: int
    approved: int
    rejected: int
    cancelled: int
    total_days: float


class LeaveReportResponse(BaseModel):
    items: list[LeaveResponse]
    summary: LeaveReportSummary
