from __future__ import annotations

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Column default for every timestamp; tables store timezone-aware UTC."""
    return datetime.now(UTC)


class UUIDBase(SQLModel):
    """Random UUID key, assigned on construction so a new leave or session has an id before flush."""

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        sa_type=sa.Uuid,
    )


class TimestampMixin(SQLModel):
    """created_at / updated_at for mutable HRMS rows.

    Services may pass ``created_at`` explicitly (leaves take it from the
    injected clock); ``updated_at`` moves on every ORM update.
    """

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": utc_now},
    )
