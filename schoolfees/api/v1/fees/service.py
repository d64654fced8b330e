"""Fees service: payment recording with vote head allocation, payment history, balance breakdown."""

import logging
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import status
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.exceptions import InvalidAmountError, ServiceError, StorageError
from schoolfees.core.models import Payment, PaymentAllocation, Student, Tenant, VoteHead, VoteHeadBalance

from .allocation import allocate, lock_student, to_decimal
from .resolver import resolve_initial_balances
from .schemas import (
    CategoryBalance,
    PaymentAllocationResponse,
    PaymentAllocationWithDetails,
    PaymentCreate,
    PaymentReceiptResponse,
    PaymentResponse,
    ReceiptSchool,
    ReceiptStudent,
)

logger = logging.getLogger(__name__)


def payment_to_response(p: Payment) -> PaymentResponse:
    return PaymentResponse(
        id=p.id,
        tenant_id=p.tenant_id,
        student_id=p.student_id,
        amount=to_decimal(p.amount),
        method=p.method,
        reference=p.reference,
        recorded_by=p.recorded_by,
        created_at=p.created_at,
    )


def allocation_to_response(a: PaymentAllocation) -> PaymentAllocationResponse:
    return PaymentAllocationResponse(
        id=a.id,
        payment_id=a.payment_id,
        vote_head_id=a.vote_head_id,
        amount=to_decimal(a.amount),
        balance_before=to_decimal(a.balance_before),
        balance_after=to_decimal(a.balance_after),
        created_at=a.created_at,
    )


# --- Payment ---
async def record_payment(
    db: AsyncSession,
    tenant_id: UUID,
    payload: PaymentCreate,
    recorded_by: Optional[UUID] = None,
) -> Tuple[Payment, List[PaymentAllocation]]:
    """Create a payment and allocate it in one transaction. Errors roll back both."""
    amount = to_decimal(payload.amount)
    if amount <= 0:
        raise InvalidAmountError()
    try:
        await lock_student(db, payload.student_id, tenant_id)
        payment = Payment(
            tenant_id=tenant_id,
            student_id=payload.student_id,
            amount=amount,
            method=payload.method.value,
            reference=(payload.reference or "").strip() or None,
            recorded_by=recorded_by,
        )
        db.add(payment)
        await db.flush()
        allocations = await allocate(db, payment, payload.student_id, tenant_id)
        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Failed to record payment", extra={"student_id": str(payload.student_id)})
        raise StorageError("Failed to record payment") from exc
    return payment, allocations


async def get_payment_history(
    db: AsyncSession,
    tenant_id: UUID,
    student_id: UUID,
) -> List[PaymentResponse]:
    stmt = (
        select(Payment)
        .where(Payment.tenant_id == tenant_id, Payment.student_id == student_id)
        .order_by(Payment.created_at.desc())
    )
    result = await db.execute(stmt)
    return [payment_to_response(p) for p in result.scalars().all()]


async def _allocations_with_details(db: AsyncSession, payment_id: UUID) -> List[PaymentAllocationWithDetails]:
    stmt = (
        select(PaymentAllocation, VoteHead.name, VoteHead.priority)
        .join(VoteHead, VoteHead.id == PaymentAllocation.vote_head_id)
        .where(PaymentAllocation.payment_id == payment_id)
        .order_by(VoteHead.priority.asc(), VoteHead.id.asc())
    )
    rows = (await db.execute(stmt)).all()
    out = []
    for a, vh_name, vh_priority in rows:
        base = allocation_to_response(a)
        out.append(PaymentAllocationWithDetails(**base.model_dump(), vote_head_name=vh_name, priority=vh_priority))
    return out


async def get_payment_allocations(
    db: AsyncSession,
    tenant_id: UUID,
    payment_id: UUID,
) -> List[PaymentAllocationWithDetails]:
    payment = (
        await db.execute(select(Payment.id).where(Payment.id == payment_id, Payment.tenant_id == tenant_id))
    ).scalar_one_or_none()
    if not payment:
        raise ServiceError("Payment not found", status.HTTP_404_NOT_FOUND)
    return await _allocations_with_details(db, payment_id)


async def get_payment_receipt(
    db: AsyncSession,
    tenant_id: UUID,
    payment_id: UUID,
) -> PaymentReceiptResponse:
    """Receipt view of a payment: who paid, which school, and where the money went."""
    row = (
        await db.execute(
            select(Payment, Student, Tenant)
            .join(Student, Student.id == Payment.student_id)
            .join(Tenant, Tenant.id == Payment.tenant_id)
            .where(Payment.id == payment_id, Payment.tenant_id == tenant_id)
        )
    ).one_or_none()
    if not row:
        raise ServiceError("Payment not found", status.HTTP_404_NOT_FOUND)
    payment, student, tenant = row
    allocations = await _allocations_with_details(db, payment.id)
    return PaymentReceiptResponse(
        receipt_number=f"RCP-{payment.id.hex[:8].upper()}",
        payment=payment_to_response(payment),
        student=ReceiptStudent(id=student.id, name=student.full_name, adm_no=student.enrollment_number),
        school=ReceiptSchool(id=tenant.id, name=tenant.name),
        allocations=allocations,
        allocated_total=sum((a.amount for a in allocations), Decimal("0")),
        date=payment.created_at,
    )


# --- Balances ---
async def get_balance_breakdown(
    db: AsyncSession,
    tenant_id: UUID,
    student_id: UUID,
) -> Tuple[List[CategoryBalance], Decimal]:
    """All balances for the student, inactive vote heads included, in priority order."""
    stmt = (
        select(VoteHeadBalance, VoteHead.name, VoteHead.priority)
        .join(VoteHead, VoteHead.id == VoteHeadBalance.vote_head_id)
        .where(
            VoteHeadBalance.student_id == student_id,
            VoteHeadBalance.tenant_id == tenant_id,
        )
        .order_by(VoteHead.priority.asc(), VoteHead.id.asc())
    )
    rows = (await db.execute(stmt)).all()
    total = Decimal("0")
    breakdown: List[CategoryBalance] = []
    for bal, vh_name, vh_priority in rows:
        amount = to_decimal(bal.balance)
        breakdown.append(
            CategoryBalance(
                vote_head_id=bal.vote_head_id,
                vote_head_name=vh_name,
                priority=vh_priority,
                balance=amount,
            )
        )
        total += amount
    return breakdown, total


async def reinitialize_balances(
    db: AsyncSession,
    tenant_id: UUID,
    student_id: UUID,
) -> Tuple[List[CategoryBalance], Decimal]:
    """Wipe the student's balances and regenerate them from the current fee schedule."""
    try:
        await lock_student(db, student_id, tenant_id)
        await db.execute(
            delete(VoteHeadBalance).where(
                VoteHeadBalance.student_id == student_id,
                VoteHeadBalance.tenant_id == tenant_id,
            )
        )
        await resolve_initial_balances(db, student_id, tenant_id)
        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StorageError("Failed to initialize balances") from exc
    logger.info("Balances reinitialized", extra={"student_id": str(student_id)})
    return await get_balance_breakdown(db, tenant_id, student_id)
