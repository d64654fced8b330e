"""Fee schedule schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class FeeScheduleCreate(BaseModel):
    class_id: UUID
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    academic_period: str = Field(..., min_length=1, max_length=50, description="e.g. 2025 or 2025-T1")


class FeeScheduleResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    class_id: UUID
    amount: Decimal
    academic_period: str
    # Sum of item amounts; may differ from amount
    items_total: Decimal
    created_at: datetime
    updated_at: datetime


class FeeScheduleItemCreate(BaseModel):
    vote_head_id: UUID
    amount: Decimal = Field(..., ge=0, decimal_places=2)


class FeeScheduleItemResponse(BaseModel):
    id: UUID
    fee_schedule_id: UUID
    vote_head_id: UUID
    vote_head_name: Optional[str] = None
    priority: Optional[int] = None
    amount: Decimal
    created_at: datetime
