"""Vote head schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class VoteHeadCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    # Omitted -> placed after the current lowest-priority vote head
    priority: Optional[int] = Field(None, ge=1)


class VoteHeadUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    priority: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None


class VoteHeadResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    name: str
    priority: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VoteHeadOrderItem(BaseModel):
    id: UUID
    priority: int = Field(..., ge=1)


class VoteHeadReorderRequest(BaseModel):
    order: List[VoteHeadOrderItem] = Field(..., min_length=1)
