"""Fee schedule service: per-class schedules and their vote head items."""

from decimal import Decimal
from typing import Dict, List
from uuid import UUID

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.api.v1.fees.allocation import to_decimal
from schoolfees.core.exceptions import ServiceError
from schoolfees.core.models import FeeSchedule, FeeScheduleItem, SchoolClass, VoteHead

from .schemas import FeeScheduleCreate, FeeScheduleItemCreate, FeeScheduleItemResponse, FeeScheduleResponse


def _to_response(fs: FeeSchedule, items_total) -> FeeScheduleResponse:
    return FeeScheduleResponse(
        id=fs.id,
        tenant_id=fs.tenant_id,
        class_id=fs.class_id,
        amount=to_decimal(fs.amount),
        academic_period=fs.academic_period,
        items_total=to_decimal(items_total),
        created_at=fs.created_at,
        updated_at=fs.updated_at,
    )


async def _get_schedule(db: AsyncSession, tenant_id: UUID, fee_schedule_id: UUID) -> FeeSchedule:
    fs = (
        await db.execute(
            select(FeeSchedule).where(FeeSchedule.id == fee_schedule_id, FeeSchedule.tenant_id == tenant_id)
        )
    ).scalar_one_or_none()
    if not fs:
        raise ServiceError("Fee schedule not found", status.HTTP_404_NOT_FOUND)
    return fs


async def create_fee_schedule(
    db: AsyncSession,
    tenant_id: UUID,
    payload: FeeScheduleCreate,
) -> FeeScheduleResponse:
    cl = await db.get(SchoolClass, payload.class_id)
    if not cl or cl.tenant_id != tenant_id:
        raise ServiceError("Invalid class", status.HTTP_400_BAD_REQUEST)
    fs = FeeSchedule(
        tenant_id=tenant_id,
        class_id=payload.class_id,
        amount=payload.amount,
        academic_period=payload.academic_period.strip(),
    )
    db.add(fs)
    await db.commit()
    await db.refresh(fs)
    return _to_response(fs, Decimal("0"))


async def list_fee_schedules(
    db: AsyncSession,
    tenant_id: UUID,
    class_id: UUID,
) -> List[FeeScheduleResponse]:
    """Schedules for a class, newest first. The first one is what new balances are built from."""
    schedules = (
        await db.execute(
            select(FeeSchedule)
            .where(FeeSchedule.tenant_id == tenant_id, FeeSchedule.class_id == class_id)
            .order_by(FeeSchedule.created_at.desc())
        )
    ).scalars().all()
    if not schedules:
        return []
    totals_rows = (
        await db.execute(
            select(FeeScheduleItem.fee_schedule_id, func.coalesce(func.sum(FeeScheduleItem.amount), 0))
            .where(FeeScheduleItem.fee_schedule_id.in_([fs.id for fs in schedules]))
            .group_by(FeeScheduleItem.fee_schedule_id)
        )
    ).all()
    totals: Dict[UUID, Decimal] = {fs_id: to_decimal(total) for fs_id, total in totals_rows}
    return [_to_response(fs, totals.get(fs.id, Decimal("0"))) for fs in schedules]


async def add_fee_schedule_item(
    db: AsyncSession,
    tenant_id: UUID,
    fee_schedule_id: UUID,
    payload: FeeScheduleItemCreate,
) -> FeeScheduleItemResponse:
    fs = await _get_schedule(db, tenant_id, fee_schedule_id)
    vh = await db.get(VoteHead, payload.vote_head_id)
    if not vh or vh.tenant_id != tenant_id:
        raise ServiceError("Invalid vote head", status.HTTP_400_BAD_REQUEST)
    item = FeeScheduleItem(
        fee_schedule_id=fs.id,
        vote_head_id=vh.id,
        amount=payload.amount,
    )
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return FeeScheduleItemResponse(
        id=item.id,
        fee_schedule_id=item.fee_schedule_id,
        vote_head_id=item.vote_head_id,
        vote_head_name=vh.name,
        priority=vh.priority,
        amount=to_decimal(item.amount),
        created_at=item.created_at,
    )


async def list_fee_schedule_items(
    db: AsyncSession,
    tenant_id: UUID,
    fee_schedule_id: UUID,
) -> List[FeeScheduleItemResponse]:
    fs = await _get_schedule(db, tenant_id, fee_schedule_id)
    rows = (
        await db.execute(
            select(FeeScheduleItem, VoteHead.name, VoteHead.priority)
            .join(VoteHead, VoteHead.id == FeeScheduleItem.vote_head_id)
            .where(FeeScheduleItem.fee_schedule_id == fs.id)
            .order_by(VoteHead.priority.asc(), VoteHead.id.asc())
        )
    ).all()
    return [
        FeeScheduleItemResponse(
            id=item.id,
            fee_schedule_id=item.fee_schedule_id,
            vote_head_id=item.vote_head_id,
            vote_head_name=vh_name,
            priority=vh_priority,
            amount=to_decimal(item.amount),
            created_at=item.created_at,
        )
        for item, vh_name, vh_priority in rows
    ]
