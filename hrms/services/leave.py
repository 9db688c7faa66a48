# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlmodel import col

from hrms.exceptions import (
    AlreadyCancelled,
    AlreadyFinalized,
    CannotCancelApproved,
    InsufficientBalance,
    InvalidRange,
    NotFound,
)
from hrms.models.enums import AuditAction, AuditEntityType, LeaveStatus
from hrms.models.leave import Leave
from hrms.models.leave_type import LeaveType
from hrms.schemas.leave import (
    LeaveListResponse,
    LeaveReportResponse,
    LeaveReportSummary,
    LeaveResponse,
)
from hrms.services.audit import audit_snapshot, write_audit_log
from hrms.services.balance import available_days, get_or_create_balance_for_update
from hrms.services.leave_type import get_active_leave_type
from hrms.services.working_days import calculate_working_days

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.models.balance import LeaveBalance
    from hrms.schemas.auth import AuthContext
    from hrms.schemas.leave import ApplyLeavePayload, RejectLeavePayload
    from hrms.services.clock import Clock

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_leave_response(leave: Leave) -> LeaveResponse:
    """Map a leave model to its response schema."""
    return LeaveResponse(
        id=leave.id,
        tenant_id=leave.tenant_id,
        user_id=leave.user_id,
        leave_type_id=leave.leave_type_id,
        start_date=leave.start_date,
        end_date=leave.end_date,
        total_days=leave.total_days,
        reason=leave.reason,
        status=LeaveStatus(leave.status),
        applied_by=leave.applied_by,
        approved_by=leave.approved_by,
        approved_at=leave.approved_at,
        rejected_by=leave.rejected_by,
        rejected_at=leave.rejected_at,
        rejection_reason=leave.rejection_reason,
        created_at=leave.created_at,
    )


async def _get_leave_or_404(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    leave_id: uuid.UUID,
    owner_id: uuid.UUID | None = None,
    *,
    for_update: bool = False,
) -> Leave:
    """Fetch a leave scoped to the tenant (and owner, when given).

    A leave of another tenant or owner is reported exactly like a missing one.
    Transitions pass ``for_update`` so the row stays locked until commit.
    """
    query = select(Leave).where(
        col(Leave.id) == leave_id,
        col(Leave.tenant_id) == tenant_id,
    )
    if owner_id is not None:
        query = query.where(col(Leave.user_id) == owner_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)

    result = await session.execute(query)
    leave = result.scalar_one_or_none()
    if leave is None:
        raise NotFound("Leave")
    return leave


def _ensure_pending(leave: Leave, *, cancelling: bool = False) -> None:
    """Raise the typed error for a leave that has already left PENDING."""
    if leave.status == LeaveStatus.PENDING.value:
        return
    if cancelling and leave.status == LeaveStatus.CANCELLED.value:
        raise AlreadyCancelled()
    if cancelling and leave.status == LeaveStatus.APPROVED.value:
        raise CannotCancelApproved()
    raise AlreadyFinalized(leave.status)


async def _claim_pending(
    session: AsyncSession,
    leave: Leave,
    new_status: LeaveStatus,
    *,
    cancelling: bool = False,
) -> None:
    """Move the leave out of PENDING only if it is still PENDING in the store.

    The conditional UPDATE matches no row when another transition committed
    first; the leave is then reloaded and the matching error raised.
    """
    result = await session.execute(
        update(Leave)
        .where(
            col(Leave.id) == leave.id,
            col(Leave.status) == LeaveStatus.PENDING.value,
        )
        .values(status=new_status.value)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:  # ty: ignore[unresolved-attribute]
        await session.refresh(leave)
        _ensure_pending(leave, cancelling=cancelling)
        raise AlreadyFinalized(leave.status)
    leave.status = new_status.value


async def _lock_leave_balance(session: AsyncSession, leave: Leave) -> LeaveBalance:
    """Lock the ledger row a leave was charged against (the start date's year)."""
    leave_type = await session.get(LeaveType, leave.leave_type_id)
    if leave_type is None:
        raise NotFound("Leave type")
    return await get_or_create_balance_for_update(
        session, leave.tenant_id, leave.user_id, leave_type, leave.start_date.year
    )


async def _finish_transition(
    session: AsyncSession,
    auth: AuthContext,
    leave: Leave,
    action: AuditAction,
    before_json: dict | None,
) -> LeaveResponse:
    await session.flush()
    await write_audit_log(
        session,
        tenant_id=auth.tenant_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE,
        entity_id=leave.id,
        action=action,
        before_json=before_json,
        after_json=audit_snapshot(leave),
    )
    await session.commit()
    await session.refresh(leave)
    return _build_leave_response(leave)


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


async def apply_leave(
    session: AsyncSession,
    auth: AuthContext,
    payload: ApplyLeavePayload,
    clock: Clock,
) -> LeaveResponse:
    """Apply for leave, reserving the working days as pending on the ledger.

    Flow:
    1. Validate the date range
    2. Resolve the active leave type of the tenant
    3. Count working days in the range
    4. Lock (or lazily create) the balance for the start date's year
    5. Enforce available >= requested
    6. Create the leave (pending)
    7. Move the days into pending_days
    8. Audit log, then one commit for 6-8
    """
    # 1. Date range.
    if payload.start_date > payload.end_date:
        raise InvalidRange()

    # 2. Leave type.
    leave_type = await get_active_leave_type(session, auth.tenant_id, payload.leave_type_id)

    # 3. Working days.
    total_days = calculate_working_days(payload.start_date, payload.end_date)

    # 4. Lock balance.
    balance = await get_or_create_balance_for_update(
        session, auth.tenant_id, auth.user_id, leave_type, payload.start_date.year
    )

    # 5. Balance check.
    available = available_days(balance)
    if total_days > available:
        raise InsufficientBalance(available)

    # 6. Create leave.
    leave = Leave(
        tenant_id=auth.tenant_id,
        user_id=auth.user_id,
        leave_type_id=leave_type.id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        total_days=total_days,
        reason=payload.reason,
        status=LeaveStatus.PENDING.value,
        applied_by=auth.user_id,
        created_at=clock.now(),
    )
    session.add(leave)

    # 7. Reserve days.
    balance.pending_days += total_days

    # 8. Audit and commit.
    response = await _finish_transition(session, auth, leave, AuditAction.APPLY, before_json=None)
    logger.info(
        "Leave %s applied by user %s: %s to %s (%d working days)",
        leave.id,
        auth.user_id,
        payload.start_date,
        payload.end_date,
        total_days,
    )
    return response


async def approve_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    clock: Clock,
) -> LeaveResponse:
    """Approve a pending leave: its pending days become used days.

    Lock order is leave, then balance. The status is claimed with a
    conditional UPDATE so a transition that committed in between wins.
    """
    leave = await _get_leave_or_404(session, auth.tenant_id, leave_id, for_update=True)
    _ensure_pending(leave)

    balance = await _lock_leave_balance(session, leave)
    before_dict = audit_snapshot(leave)

    await _claim_pending(session, leave, LeaveStatus.APPROVED)
    leave.approved_by = auth.user_id
    leave.approved_at = clock.now()

    balance.used_days += leave.total_days
    balance.pending_days -= leave.total_days

    response = await _finish_transition(session, auth, leave, AuditAction.APPROVE, before_dict)
    logger.info("Leave %s approved by %s", leave.id, auth.user_id)
    return response


async def reject_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    payload: RejectLeavePayload | None,
    clock: Clock,
) -> LeaveResponse:
    """Reject a pending leave and release its pending days."""
    leave = await _get_leave_or_404(session, auth.tenant_id, leave_id, for_update=True)
    _ensure_pending(leave)

    balance = await _lock_leave_balance(session, leave)
    before_dict = audit_snapshot(leave)

    await _claim_pending(session, leave, LeaveStatus.REJECTED)
    leave.rejected_by = auth.user_id
    leave.rejected_at = clock.now()
    leave.rejection_reason = payload.rejection_reason if payload else None

    balance.pending_days -= leave.total_days

    response = await _finish_transition(session, auth, leave, AuditAction.REJECT, before_dict)
    logger.info("Leave %s rejected by %s", leave.id, auth.user_id)
    return response


async def cancel_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
) -> LeaveResponse:
    """Cancel one of the caller's own pending leaves and release its pending days.

    Only the owner can cancel. Approved and rejected leaves are final.
    """
    leave = await _get_leave_or_404(session, auth.tenant_id, leave_id, owner_id=auth.user_id, for_update=True)
    _ensure_pending(leave, cancelling=True)

    balance = await _lock_leave_balance(session, leave)
    before_dict = audit_snapshot(leave)

    await _claim_pending(session, leave, LeaveStatus.CANCELLED, cancelling=True)
    balance.pending_days -= leave.total_days

    response = await _finish_transition(session, auth, leave, AuditAction.CANCEL, before_dict)
    logger.info("Leave %s cancelled by owner %s", leave.id, auth.user_id)
    return response


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
) -> LeaveResponse:
    """Get a single leave. Employees only see their own; reviewers see the tenant's."""
    owner_id = None if auth.is_reviewer else auth.user_id
    leave = await _get_leave_or_404(session, auth.tenant_id, leave_id, owner_id=owner_id)
    return _build_leave_response(leave)


async def list_my_leaves(session: AsyncSession, auth: AuthContext) -> LeaveListResponse:
    """List the caller's leaves, newest first."""
    result = await session.execute(
        select(Leave)
        .where(
            col(Leave.tenant_id) == auth.tenant_id,
            col(Leave.user_id) == auth.user_id,
        )
        .order_by(col(Leave.created_at).desc())
    )
    leaves = list(result.scalars().all())
    return LeaveListResponse(items=[_build_leave_response(lv) for lv in leaves], total=len(leaves))


async def list_leaves(
    session: AsyncSession,
    auth: AuthContext,
    status_filter: LeaveStatus | None = None,
) -> LeaveListResponse:
    """List every leave of the tenant, optionally by status, newest first."""
    query = select(Leave).where(col(Leave.tenant_id) == auth.tenant_id)
    if status_filter is not None:
        query = query.where(col(Leave.status) == status_filter.value)

    result = await session.execute(query.order_by(col(Leave.created_at).desc()))
    leaves = list(result.scalars().all())
    return LeaveListResponse(items=[_build_leave_response(lv) for lv in leaves], total=len(leaves))


async def leave_report(
    session: AsyncSession,
    auth: AuthContext,
    user_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> LeaveReportResponse:
    """Leaves fully inside [start_date, end_date] with per-status counts.

    ``total_days`` only sums approved leaves.
    """
    query = select(Leave).where(col(Leave.tenant_id) == auth.tenant_id)
    if user_id is not None:
        query = query.where(col(Leave.user_id) == user_id)
    if start_date is not None:
        query = query.where(col(Leave.start_date) >= start_date)
    if end_date is not None:
        query = query.where(col(Leave.end_date) <= end_date)

    result = await session.execute(query.order_by(col(Leave.start_date).desc()))
    leaves = list(result.scalars().all())

    counts = dict.fromkeys(LeaveStatus, 0)
    approved_days = 0.0
    for leave in leaves:
        status = LeaveStatus(leave.status)
        counts[status] += 1
        if status is LeaveStatus.APPROVED:
            approved_days += leave.total_days

    return LeaveReportResponse(
        items=[_build_leave_response(lv) for lv in leaves],
        summary=LeaveReportSummary(
            total=len(leaves),
            pending=counts[LeaveStatus.PENDING],
            approved=counts[LeaveStatus.APPROVED],
            rejected=counts[LeaveStatus.REJECTED],
            cancelled=counts[LeaveStatus.CANCELLED],
            total_days=approved_days,
        ),
    )
