from sqlmodel import SQLModel

from hrms.models.audit import AuditLog
from hrms.models.balance import LeaveBalance
from hrms.models.base import TimestampMixin, UUIDBase
from hrms.models.enums import AuditAction, AuditEntityType, LeaveStatus, Role
from hrms.models.leave import Leave
from hrms.models.leave_type import LeaveType
from hrms.models.time_tracking import TimeTrackingSession

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "Leave",
    "LeaveBalance",
    "LeaveStatus",
    "LeaveType",
    "Role",
    "SQLModel",
    "TimeTrackingSession",
    "TimestampMixin",
    "UUIDBase",
]
