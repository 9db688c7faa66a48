# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from hrms.models.audit import AuditLog

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from hrms.models.enums import AuditAction, AuditEntityType


def audit_snapshot(model: SQLModel) -> dict[str, Any]:
    """JSON-ready copy of a leave or leave type row, as stored in before/after_json."""
    return model.model_dump(mode="json")


async def write_audit_log(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    actor_id: uuid.UUID,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID,
    action: AuditAction,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction.

    The row commits or rolls back together with the leave or leave type
    change it describes.
    """
    entry = AuditLog(
        tenant_id=tenant_id,
        actor_id=actor_id,
        entity_type=entity_type.value,
        entity_id=entity_id,
        action=action.value,
        before_json=before_json,
        after_json=after_json,
    )
    session.add(entry)
    return entry
