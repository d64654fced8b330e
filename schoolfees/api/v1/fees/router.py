"""Fees router: record payment, payment history, allocations, receipts, vote head balances."""

from decimal import Decimal
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.auth.rbac import require_roles
from schoolfees.auth.schemas import CurrentUser
from schoolfees.core.exceptions import ServiceError
from schoolfees.db.session import get_db

from .schemas import (
    BalanceBreakdownResponse,
    PaymentAllocationWithDetails,
    PaymentCreate,
    PaymentReceiptResponse,
    PaymentResponse,
    PaymentWithAllocationsResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/fees", tags=["fees"])


# --- Payment ---
@router.post(
    "/payments",
    response_model=PaymentWithAllocationsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_payment(
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("SCHOOL_ADMIN", "FINANCE")),
) -> PaymentWithAllocationsResponse:
    try:
        payment, allocations = await service.record_payment(
            db, current_user.tenant_id, payload, recorded_by=current_user.id
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    items = [service.allocation_to_response(a) for a in allocations]
    return PaymentWithAllocationsResponse(
        payment=service.payment_to_response(payment),
        allocations=items,
        allocated_total=sum((a.amount for a in items), Decimal("0")),
    )


@router.get(
    "/payments/{payment_id}/allocations",
    response_model=List[PaymentAllocationWithDetails],
)
async def get_payment_allocations(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("SCHOOL_ADMIN", "FINANCE")),
) -> List[PaymentAllocationWithDetails]:
    try:
        return await service.get_payment_allocations(db, current_user.tenant_id, payment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/payments/{payment_id}/receipt",
    response_model=PaymentReceiptResponse,
)
async def get_payment_receipt(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("SCHOOL_ADMIN", "FINANCE")),
) -> PaymentReceiptResponse:
    try:
        return await service.get_payment_receipt(db, current_user.tenant_id, payment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/students/{student_id}/payments",
    response_model=List[PaymentResponse],
)
async def get_payment_history(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("SCHOOL_ADMIN", "FINANCE", "PARENT")),
) -> List[PaymentResponse]:
    return await service.get_payment_history(db, current_user.tenant_id, student_id)


# --- Vote head balances ---
@router.get(
    "/students/{student_id}/balances",
    response_model=BalanceBreakdownResponse,
)
async def get_vote_head_balances(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("SCHOOL_ADMIN", "FINANCE", "PARENT")),
) -> BalanceBreakdownResponse:
    breakdown, total = await service.get_balance_breakdown(db, current_user.tenant_id, student_id)
    return BalanceBreakdownResponse(student_id=student_id, breakdown=breakdown, total_balance=total)


@router.post(
    "/students/{student_id}/balances/initialize",
    response_model=BalanceBreakdownResponse,
)
async def initialize_vote_head_balances(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("SCHOOL_ADMIN")),
) -> BalanceBreakdownResponse:
    try:
        breakdown, total = await service.reinitialize_balances(db, current_user.tenant_id, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return BalanceBreakdownResponse(student_id=student_id, breakdown=breakdown, total_balance=total)
