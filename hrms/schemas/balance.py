# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel


class BalanceResponse(BaseModel):
    """Ledger state for one leave type and year."""

    leave_type_id: uuid.UUID
    leave_type_name: str
    max_days: float
    year: int
    allocated_days: float
    used_days: float
    pending_days: float
    available_days: float


class BalanceListResponse(BaseModel):
    """All balances of the caller for a year."""

    items: list[BalanceResponse]
    total: int
