# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from hrms.api.deps import AdminDep, AuthDep
from hrms.db import SessionDep
from hrms.schemas.leave_type import CreateLeaveTypeRequest, LeaveTypeListResponse, LeaveTypeResponse
from hrms.services import leave_type as leave_type_service

leave_types_router = APIRouter(prefix="/leave-types", tags=["leave-types"])


@leave_types_router.get("", response_model=LeaveTypeListResponse)
async def list_leave_types(
    session: SessionDep,
    auth: AuthDep,
) -> LeaveTypeListResponse:
    """List active leave types of the caller's tenant."""
    return await leave_type_service.list_leave_types(session, auth)


@leave_types_router.post("", response_model=LeaveTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_type(
    payload: CreateLeaveTypeRequest,
    session: SessionDep,
    auth: AdminDep,
) -> LeaveTypeResponse:
    """Create a leave type (admin only)."""
    return await leave_type_service.create_leave_type(session, auth, payload)


@leave_types_router.post("/{leave_type_id}/deactivate", response_model=LeaveTypeResponse)
async def deactivate_leave_type(
    leave_type_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> LeaveTypeResponse:
    """Deactivate a leave type (admin only)."""
    return await leave_type_service.deactivate_leave_type(session, auth, leave_type_id)
