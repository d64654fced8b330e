"""Fees schemas: payments, allocations, balance breakdown."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from schoolfees.core.enums import PaymentMethod


# --- Payment ---
class PaymentCreate(BaseModel):
    student_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    method: PaymentMethod = PaymentMethod.CASH
    reference: Optional[str] = Field(None, max_length=100)


class PaymentResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    student_id: UUID
    amount: Decimal
    method: str
    reference: Optional[str] = None
    recorded_by: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentAllocationResponse(BaseModel):
    id: UUID
    payment_id: UUID
    vote_head_id: UUID
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentAllocationWithDetails(PaymentAllocationResponse):
    vote_head_name: Optional[str] = None
    priority: Optional[int] = None


class PaymentWithAllocationsResponse(BaseModel):
    payment: PaymentResponse
    allocations: List[PaymentAllocationResponse]
    allocated_total: Decimal


class ReceiptStudent(BaseModel):
    id: UUID
    name: str
    adm_no: str


class ReceiptSchool(BaseModel):
    id: UUID
    name: str


class PaymentReceiptResponse(BaseModel):
    receipt_number: str
    payment: PaymentResponse
    student: ReceiptStudent
    school: ReceiptSchool
    allocations: List[PaymentAllocationWithDetails]
    allocated_total: Decimal
    date: datetime


# --- Balance breakdown ---
class CategoryBalance(BaseModel):
    vote_head_id: UUID
    vote_head_name: str
    priority: int
    balance: Decimal


class BalanceBreakdownResponse(BaseModel):
    student_id: UUID
    breakdown: List[CategoryBalance]
    total_balance: Decimal
