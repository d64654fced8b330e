"""
Resolve a student's opening vote head balances from their class fee schedule.

The newest schedule for the class wins. One balance row is created per schedule
item; existing balances are not checked, so callers only invoke this when the
student has none (or after wiping them).
"""

import logging
from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.exceptions import NoScheduleError, NotAssignedError, StudentNotFoundError
from schoolfees.core.models import FeeSchedule, FeeScheduleItem, Student, VoteHeadBalance

logger = logging.getLogger(__name__)


async def resolve_initial_balances(
    db: AsyncSession,
    student_id: UUID,
    tenant_id: UUID,
) -> List[VoteHeadBalance]:
    student = (
        await db.execute(select(Student).where(Student.id == student_id, Student.tenant_id == tenant_id))
    ).scalar_one_or_none()
    if not student:
        raise StudentNotFoundError()
    if student.class_id is None:
        raise NotAssignedError()

    schedule = (
        await db.execute(
            select(FeeSchedule)
            .where(
                FeeSchedule.tenant_id == tenant_id,
                FeeSchedule.class_id == student.class_id,
            )
            .order_by(FeeSchedule.created_at.desc())
            .limit(1)
        )
    ).scalar_one_or_none()
    if not schedule:
        raise NoScheduleError()

    items = (
        await db.execute(
            select(FeeScheduleItem)
            .where(FeeScheduleItem.fee_schedule_id == schedule.id)
            .order_by(FeeScheduleItem.created_at)
        )
    ).scalars().all()

    now = datetime.utcnow()
    balances = [
        VoteHeadBalance(
            tenant_id=tenant_id,
            student_id=student_id,
            vote_head_id=item.vote_head_id,
            balance=item.amount,
            last_updated=now,
        )
        for item in items
    ]
    db.add_all(balances)
    await db.flush()
    logger.info(
        "Initialized vote head balances",
        extra={"student_id": str(student_id), "fee_schedule_id": str(schedule.id), "count": len(balances)},
    )
    return balances
