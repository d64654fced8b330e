"""
Priority-ordered allocation of a payment across a student's vote head balances.

Balances are cleared in ascending vote head priority (ties by vote head id). Any
amount left once every active balance is cleared is pushed onto the last balance
as a credit (negative balance). Nothing here commits: the caller owns the
transaction, so balance updates and allocation rows land together or not at all.
"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.exceptions import InvalidAmountError, StorageError, StudentNotFoundError
from schoolfees.core.models import Payment, PaymentAllocation, Student, VoteHead, VoteHeadBalance

from .resolver import resolve_initial_balances

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_decimal(val) -> Decimal:
    """Money value rounded to cents, matching the Numeric(12, 2) columns."""
    if val is None:
        return Decimal("0.00")
    d = val if isinstance(val, Decimal) else Decimal(str(val))
    return d.quantize(CENT, rounding=ROUND_HALF_UP)


async def lock_student(db: AsyncSession, student_id: UUID, tenant_id: UUID) -> Student:
    """Lock the student row so allocations for one student run one at a time."""
    student = (
        await db.execute(
            select(Student)
            .where(Student.id == student_id, Student.tenant_id == tenant_id)
            .with_for_update()
        )
    ).scalar_one_or_none()
    if not student:
        raise StudentNotFoundError()
    return student


async def _active_balances(db: AsyncSession, student_id: UUID, tenant_id: UUID) -> List[VoteHeadBalance]:
    stmt = (
        select(VoteHeadBalance)
        .join(VoteHead, VoteHead.id == VoteHeadBalance.vote_head_id)
        .where(
            VoteHeadBalance.student_id == student_id,
            VoteHeadBalance.tenant_id == tenant_id,
            VoteHead.is_active.is_(True),
        )
        .order_by(VoteHead.priority.asc(), VoteHead.id.asc(), VoteHeadBalance.id.asc())
        .with_for_update(of=VoteHeadBalance)
    )
    return list((await db.execute(stmt)).scalars().all())


async def allocate(
    db: AsyncSession,
    payment: Payment,
    student_id: UUID,
    tenant_id: UUID,
) -> List[PaymentAllocation]:
    """Apply payment to the student's balances and return the allocation rows created."""
    amount = to_decimal(payment.amount)
    if amount <= 0:
        raise InvalidAmountError()
    try:
        return await _allocate(db, payment.id, amount, student_id, tenant_id)
    except SQLAlchemyError as exc:
        raise StorageError("Failed to allocate payment") from exc


async def _allocate(
    db: AsyncSession,
    payment_id: UUID,
    amount: Decimal,
    student_id: UUID,
    tenant_id: UUID,
) -> List[PaymentAllocation]:
    await lock_student(db, student_id, tenant_id)

    balances = await _active_balances(db, student_id, tenant_id)
    if not balances:
        await resolve_initial_balances(db, student_id, tenant_id)
        balances = await _active_balances(db, student_id, tenant_id)

    now = datetime.utcnow()
    remaining = amount
    allocations: List[PaymentAllocation] = []
    for bal in balances:
        if remaining <= 0:
            break
        current = to_decimal(bal.balance)
        if current <= 0:
            continue
        applied = min(current, remaining)
        allocations.append(
            PaymentAllocation(
                payment_id=payment_id,
                vote_head_id=bal.vote_head_id,
                amount=applied,
                balance_before=current,
                balance_after=current - applied,
                created_at=now,
            )
        )
        bal.balance = current - applied
        bal.last_updated = now
        remaining -= applied

    if remaining > 0:
        if balances:
            # Overpayment stays as credit on the lowest-priority balance
            last = balances[-1]
            last.balance = to_decimal(last.balance) - remaining
            last.last_updated = now
        else:
            logger.warning(
                "Overpayment dropped: student has no active vote head balances",
                extra={"payment_id": str(payment_id), "student_id": str(student_id), "amount": str(remaining)},
            )

    db.add_all(allocations)
    await db.flush()
    logger.info(
        "Payment allocated",
        extra={"payment_id": str(payment_id), "student_id": str(student_id), "allocations": len(allocations)},
    )
    return allocations
