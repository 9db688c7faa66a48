from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from hrms.exceptions import DuplicateLeaveType, NotFound, UnknownLeaveType
from hrms.models.enums import AuditAction, AuditEntityType
from hrms.models.leave_type import LeaveType
from hrms.schemas.leave_type import LeaveTypeListResponse, LeaveTypeResponse
from hrms.services.audit import audit_snapshot, write_audit_log

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.auth import AuthContext
    from hrms.schemas.leave_type import CreateLeaveTypeRequest

logger = logging.getLogger(__name__)


def _build_leave_type_response(leave_type: LeaveType) -> LeaveTypeResponse:
    return LeaveTypeResponse(
        id=leave_type.id,
        tenant_id=leave_type.tenant_id,
        name=leave_type.name,
        description=leave_type.description,
        max_days=leave_type.max_days,
        is_paid=leave_type.is_paid,
        requires_approval=leave_type.requires_approval,
        is_active=leave_type.is_active,
        created_at=leave_type.created_at,
    )


async def get_active_leave_type(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    leave_type_id: uuid.UUID,
) -> LeaveType:
    """Resolve an active leave type of the tenant. Raises UnknownLeaveType otherwise."""
    result = await session.execute(
        select(LeaveType).where(
            col(LeaveType.id) == leave_type_id,
            col(LeaveType.tenant_id) == tenant_id,
            col(LeaveType.is_active).is_(True),
        )
    )
    leave_type = result.scalar_one_or_none()
    if leave_type is None:
        raise UnknownLeaveType()
    return leave_type


async def list_leave_types(session: AsyncSession, auth: AuthContext) -> LeaveTypeListResponse:
    """List the tenant's active leave types ordered by name."""
    result = await session.execute(
        select(LeaveType)
        .where(
            col(LeaveType.tenant_id) == auth.tenant_id,
            col(LeaveType.is_active).is_(True),
        )
        .order_by(col(LeaveType.name))
    )
    leave_types = list(result.scalars().all())
    return LeaveTypeListResponse(
        items=[_build_leave_type_response(lt) for lt in leave_types],
        total=len(leave_types),
    )


async def create_leave_type(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateLeaveTypeRequest,
) -> LeaveTypeResponse:
    """Add a leave type to the tenant catalog."""
    leave_type = LeaveType(
        tenant_id=auth.tenant_id,
        name=payload.name,
        description=payload.description,
        max_days=payload.max_days,
        is_paid=payload.is_paid,
        requires_approval=payload.requires_approval,
    )
    session.add(leave_type)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise DuplicateLeaveType(payload.name) from None

    await write_audit_log(
        session,
        tenant_id=auth.tenant_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE_TYPE,
        entity_id=leave_type.id,
        action=AuditAction.CREATE,
        after_json=audit_snapshot(leave_type),
    )

    await session.commit()
    await session.refresh(leave_type)
    logger.info("Leave type %s created for tenant %s", leave_type.name, auth.tenant_id)
    return _build_leave_type_response(leave_type)


async def deactivate_leave_type(
    session: AsyncSession,
    auth: AuthContext,
    leave_type_id: uuid.UUID,
) -> LeaveTypeResponse:
    """Retire a leave type. Existing leaves keep referencing it; new applications are refused."""
    result = await session.execute(
        select(LeaveType).where(
            col(LeaveType.id) == leave_type_id,
            col(LeaveType.tenant_id) == auth.tenant_id,
        )
    )
    leave_type = result.scalar_one_or_none()
    if leave_type is None:
        raise NotFound("Leave type")

    if leave_type.is_active:
        before_dict = audit_snapshot(leave_type)
        leave_type.is_active = False
        await session.flush()

        await write_audit_log(
            session,
            tenant_id=auth.tenant_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.LEAVE_TYPE,
            entity_id=leave_type.id,
            action=AuditAction.DEACTIVATE,
            before_json=before_dict,
            after_json=audit_snapshot(leave_type),
        )
        await session.commit()
        await session.refresh(leave_type)
        logger.info("Leave type %s deactivated for tenant %s", leave_type.name, auth.tenant_id)

    return _build_leave_type_response(leave_type)
