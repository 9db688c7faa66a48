from __future__ import annotations

import enum


class LeaveStatus(enum.StrEnum):
    """State machine for leave applications. Every state but PENDING is terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class Role(enum.StrEnum):
    """Role carried by the authenticated caller."""

    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    LEAVE = "LEAVE"
    LEAVE_TYPE = "LEAVE_TYPE"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    DEACTIVATE = "DEACTIVATE"
    APPLY = "APPLY"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
