# ruff: noqa: TC003
from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from hrms.exceptions import AlreadyClockedIn, AlreadyOnBreak, NoOpenSession, NotOnBreak
from hrms.models.time_tracking import TimeTrackingSession
from hrms.schemas.time_tracking import (
    AttendanceDayResponse,
    AttendanceListResponse,
    TimeTrackingSessionResponse,
    TodayStatusResponse,
)
from hrms.services.clock import hours_between

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.auth import AuthContext
    from hrms.services.clock import Clock

logger = logging.getLogger(__name__)

DEFAULT_ATTENDANCE_LIMIT = 100


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_session_response(tracking: TimeTrackingSession) -> TimeTrackingSessionResponse:
    return TimeTrackingSessionResponse(
        id=tracking.id,
        user_id=tracking.user_id,
        date=tracking.date,
        clock_in_time=tracking.clock_in_time,
        clock_out_time=tracking.clock_out_time,
        break_in_time=tracking.break_in_time,
        break_out_time=tracking.break_out_time,
        total_work_hours=tracking.total_work_hours,
        total_break_hours=tracking.total_break_hours,
    )


def _day_of(now: datetime) -> date:
    """Calendar day key of a timestamp (UTC)."""
    return now.astimezone(UTC).date()


def _is_on_break(tracking: TimeTrackingSession) -> bool:
    return tracking.break_in_time is not None and tracking.break_out_time is None


def _session_hours(tracking: TimeTrackingSession, now: datetime) -> tuple[float, float]:
    """Return (work, break) hours of a session if it were closed at ``now``.

    An open break counts up to ``now``. Work hours are not clamped here.
    """
    break_hours = tracking.total_break_hours or 0.0
    if _is_on_break(tracking) and tracking.break_in_time is not None:
        break_hours += hours_between(tracking.break_in_time, now)
    elapsed = hours_between(tracking.clock_in_time, now)
    return elapsed - break_hours, break_hours


async def _get_open_session(
    session: AsyncSession,
    auth: AuthContext,
    day: date,
) -> TimeTrackingSession | None:
    """Lock the caller's open session for the day, if any."""
    result = await session.execute(
        select(TimeTrackingSession)
        .where(
            col(TimeTrackingSession.tenant_id) == auth.tenant_id,
            col(TimeTrackingSession.user_id) == auth.user_id,
            col(TimeTrackingSession.date) == day,
            col(TimeTrackingSession.clock_out_time).is_(None),
        )
        .order_by(col(TimeTrackingSession.clock_in_time).desc())
        .limit(1)
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def _require_open_session(
    session: AsyncSession,
    auth: AuthContext,
    day: date,
) -> TimeTrackingSession:
    tracking = await _get_open_session(session, auth, day)
    if tracking is None:
        raise NoOpenSession()
    return tracking


async def _commit(session: AsyncSession, tracking: TimeTrackingSession) -> TimeTrackingSessionResponse:
    await session.commit()
    await session.refresh(tracking)
    return _build_session_response(tracking)


# ---------------------------------------------------------------------------
# Clock and break events
# ---------------------------------------------------------------------------


async def clock_in(session: AsyncSession, auth: AuthContext, clock: Clock) -> TimeTrackingSessionResponse:
    """Open a new session for today.

    Every clock-in after a closed session starts a fresh row. The unique
    open-session index turns a concurrent duplicate into AlreadyClockedIn.
    """
    now = clock.now()
    today = _day_of(now)

    if await _get_open_session(session, auth, today) is not None:
        raise AlreadyClockedIn()

    tracking = TimeTrackingSession(
        tenant_id=auth.tenant_id,
        user_id=auth.user_id,
        date=today,
        clock_in_time=now,
    )
    session.add(tracking)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise AlreadyClockedIn() from None

    response = await _commit(session, tracking)
    logger.info("User %s clocked in at %s", auth.user_id, now.isoformat())
    return response


async def break_in(session: AsyncSession, auth: AuthContext, clock: Clock) -> TimeTrackingSessionResponse:
    """Start a break in the open session. A new break overwrites the previous break's timestamps."""
    now = clock.now()
    tracking = await _require_open_session(session, auth, _day_of(now))

    if _is_on_break(tracking):
        raise AlreadyOnBreak()

    tracking.break_in_time = now
    tracking.break_out_time = None

    response = await _commit(session, tracking)
    logger.info("User %s started a break at %s", auth.user_id, now.isoformat())
    return response


async def break_out(session: AsyncSession, auth: AuthContext, clock: Clock) -> TimeTrackingSessionResponse:
    """End the open break and fold its duration into total_break_hours."""
    now = clock.now()
    tracking = await _get_open_session(session, auth, _day_of(now))

    if tracking is None or tracking.break_in_time is None or not _is_on_break(tracking):
        raise NotOnBreak()

    elapsed = hours_between(tracking.break_in_time, now)
    tracking.total_break_hours = (tracking.total_break_hours or 0.0) + elapsed
    tracking.break_out_time = now

    response = await _commit(session, tracking)
    logger.info("User %s ended a break of %.2f hours", auth.user_id, elapsed)
    return response


async def clock_out(session: AsyncSession, auth: AuthContext, clock: Clock) -> TimeTrackingSessionResponse:
    """Close the open session, settling work and break hours.

    An open break is counted up to now. Work hours below zero (break time
    exceeding elapsed time, e.g. from clock skew) are clamped to zero.
    """
    now = clock.now()
    tracking = await _require_open_session(session, auth, _day_of(now))

    work_hours, break_hours = _session_hours(tracking, now)
    if work_hours < 0:
        logger.warning(
            "Session %s of user %s computed %.4f work hours; clamping to zero",
            tracking.id,
            auth.user_id,
            work_hours,
        )
        work_hours = 0.0

    tracking.clock_out_time = now
    tracking.total_work_hours = work_hours
    tracking.total_break_hours = break_hours

    response = await _commit(session, tracking)
    logger.info("User %s clocked out after %.2f work hours", auth.user_id, work_hours)
    return response


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_today_status(session: AsyncSession, auth: AuthContext, clock: Clock) -> TodayStatusResponse:
    """Summarize today's sessions.

    Closed sessions contribute their persisted totals. The open session, if
    any, contributes a live projection that is returned but never stored.
    """
    now = clock.now()
    result = await session.execute(
        select(TimeTrackingSession)
        .where(
            col(TimeTrackingSession.tenant_id) == auth.tenant_id,
            col(TimeTrackingSession.user_id) == auth.user_id,
            col(TimeTrackingSession.date) == _day_of(now),
        )
        .order_by(col(TimeTrackingSession.clock_in_time))
    )
    sessions = list(result.scalars().all())

    closed = [s for s in sessions if s.clock_out_time is not None]
    active = next((s for s in sessions if s.clock_out_time is None), None)

    total_work = sum(s.total_work_hours or 0.0 for s in closed)
    total_break = sum(s.total_break_hours or 0.0 for s in closed)

    if active is not None:
        live_work, live_break = _session_hours(active, now)
        total_work += max(0.0, live_work)
        total_break += live_break

    last_clock_out = closed[-1].clock_out_time if closed and active is None else None

    return TodayStatusResponse(
        clocked_in=active is not None,
        clocked_out=active is None and bool(sessions),
        on_break=active is not None and _is_on_break(active),
        clock_in_time=active.clock_in_time if active else None,
        clock_out_time=last_clock_out,
        break_in_time=active.break_in_time if active else None,
        break_out_time=active.break_out_time if active else None,
        total_work_hours=round(total_work, 2),
        total_break_hours=round(total_break, 2),
        sessions_count=len(sessions),
    )


async def get_attendance(
    session: AsyncSession,
    auth: AuthContext,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = DEFAULT_ATTENDANCE_LIMIT,
) -> AttendanceListResponse:
    """Per-day attendance of the caller, most recent day first.

    A day whose sessions are not all closed reports no clock-out time.
    """
    open_sessions = func.sum(case((col(TimeTrackingSession.clock_out_time).is_(None), 1), else_=0))
    query = select(
        col(TimeTrackingSession.date),
        func.min(col(TimeTrackingSession.clock_in_time)).label("first_clock_in"),
        func.max(col(TimeTrackingSession.clock_out_time)).label("last_clock_out"),
        open_sessions.label("open_sessions"),
        func.coalesce(func.sum(col(TimeTrackingSession.total_work_hours)), 0).label("work_hours"),
        func.coalesce(func.sum(col(TimeTrackingSession.total_break_hours)), 0).label("break_hours"),
    ).where(
        col(TimeTrackingSession.tenant_id) == auth.tenant_id,
        col(TimeTrackingSession.user_id) == auth.user_id,
    )
    if start_date is not None:
        query = query.where(col(TimeTrackingSession.date) >= start_date)
    if end_date is not None:
        query = query.where(col(TimeTrackingSession.date) <= end_date)

    query = query.group_by(col(TimeTrackingSession.date)).order_by(col(TimeTrackingSession.date).desc()).limit(limit)

    result = await session.execute(query)
    items = [
        AttendanceDayResponse(
            date=row.date,
            clock_in_time=row.first_clock_in,
            clock_out_time=None if row.open_sessions else row.last_clock_out,
            total_work_hours=float(row.work_hours),
            total_break_hours=float(row.break_hours),
        )
        for row in result.all()
    ]
    return AttendanceListResponse(items=items, total=len(items))
