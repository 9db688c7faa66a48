from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from hrms.models.balance import LeaveBalance
from hrms.models.leave_type import LeaveType
from hrms.schemas.balance import BalanceListResponse, BalanceResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.auth import AuthContext


def available_days(balance: LeaveBalance) -> float:
    """Days that can still be requested against this ledger row."""
    return balance.allocated_days - balance.used_days - balance.pending_days


# ---------------------------------------------------------------------------
# Locked access for the leave workflow
# ---------------------------------------------------------------------------


async def _select_balance_for_update(
    session: AsyncSession,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
) -> LeaveBalance | None:
    result = await session.execute(
        select(LeaveBalance)
        .where(
            col(LeaveBalance.user_id) == user_id,
            col(LeaveBalance.leave_type_id) == leave_type_id,
            col(LeaveBalance.year) == year,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_or_create_balance_for_update(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    user_id: uuid.UUID,
    leave_type: LeaveType,
    year: int,
) -> LeaveBalance:
    """Get the balance row with a FOR UPDATE lock, creating it if absent.

    New rows are seeded with the leave type's annual cap. The insert runs in a
    savepoint so that losing a creation race to a concurrent request only
    rolls back the insert; the winner's row is then read and locked instead.
    """
    balance = await _select_balance_for_update(session, user_id, leave_type.id, year)
    if balance is not None:
        return balance

    balance = LeaveBalance(
        tenant_id=tenant_id,
        user_id=user_id,
        leave_type_id=leave_type.id,
        year=year,
        allocated_days=leave_type.max_days,
        used_days=0,
        pending_days=0,
    )
    try:
        async with session.begin_nested():
            session.add(balance)
            await session.flush()
    except IntegrityError:
        existing = await _select_balance_for_update(session, user_id, leave_type.id, year)
        if existing is None:
            raise
        return existing

    return balance


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def list_balances(
    session: AsyncSession,
    auth: AuthContext,
    year: int,
) -> BalanceListResponse:
    """List the caller's balances for a year, one per leave type applied against."""
    result = await session.execute(
        select(LeaveBalance, col(LeaveType.name), col(LeaveType.max_days))
        .join(LeaveType, col(LeaveType.id) == col(LeaveBalance.leave_type_id))
        .where(
            col(LeaveBalance.user_id) == auth.user_id,
            col(LeaveBalance.tenant_id) == auth.tenant_id,
            col(LeaveBalance.year) == year,
        )
        .order_by(col(LeaveType.name))
    )

    items = [
        BalanceResponse(
            leave_type_id=balance.leave_type_id,
            leave_type_name=name,
            max_days=max_days,
            year=balance.year,
            allocated_days=balance.allocated_days,
            used_days=balance.used_days,
            pending_days=balance.pending_days,
            available_days=available_days(balance),
        )
        for balance, name, max_days in result.all()
    ]
    return BalanceListResponse(items=items, total=len(items))
