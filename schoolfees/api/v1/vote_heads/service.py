"""Vote head service layer."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.models import VoteHead

from .schemas import VoteHeadCreate, VoteHeadReorderRequest, VoteHeadResponse, VoteHeadUpdate


def _to_response(vh: VoteHead) -> VoteHeadResponse:
    return VoteHeadResponse(
        id=vh.id,
        tenant_id=vh.tenant_id,
        name=vh.name,
        priority=vh.priority,
        is_active=vh.is_active,
        created_at=vh.created_at,
        updated_at=vh.updated_at,
    )


async def _next_priority(db: AsyncSession, tenant_id: UUID) -> int:
    current = (
        await db.execute(
            select(func.coalesce(func.max(VoteHead.priority), 0)).where(VoteHead.tenant_id == tenant_id)
        )
    ).scalar()
    return int(current or 0) + 1


async def create_vote_head(
    db: AsyncSession,
    tenant_id: UUID,
    payload: VoteHeadCreate,
) -> VoteHeadResponse:
    priority = payload.priority
    if priority is None:
        priority = await _next_priority(db, tenant_id)
    vh = VoteHead(
        tenant_id=tenant_id,
        name=payload.name.strip(),
        priority=priority,
        is_active=True,
    )
    db.add(vh)
    await db.commit()
    await db.refresh(vh)
    return _to_response(vh)


async def list_vote_heads(
    db: AsyncSession,
    tenant_id: UUID,
    active_only: bool = False,
) -> List[VoteHeadResponse]:
    stmt = select(VoteHead).where(VoteHead.tenant_id == tenant_id)
    if active_only:
        stmt = stmt.where(VoteHead.is_active.is_(True))
    stmt = stmt.order_by(VoteHead.priority.asc(), VoteHead.id.asc())
    result = await db.execute(stmt)
    return [_to_response(vh) for vh in result.scalars().all()]


async def _get_vote_head(db: AsyncSession, tenant_id: UUID, vote_head_id: UUID) -> Optional[VoteHead]:
    result = await db.execute(
        select(VoteHead).where(VoteHead.id == vote_head_id, VoteHead.tenant_id == tenant_id)
    )
    return result.scalar_one_or_none()


async def update_vote_head(
    db: AsyncSession,
    tenant_id: UUID,
    vote_head_id: UUID,
    payload: VoteHeadUpdate,
) -> Optional[VoteHeadResponse]:
    vh = await _get_vote_head(db, tenant_id, vote_head_id)
    if not vh:
        return None
    if payload.name is not None:
        vh.name = payload.name.strip()
    if payload.priority is not None:
        vh.priority = payload.priority
    if payload.is_active is not None:
        vh.is_active = payload.is_active
    await db.commit()
    await db.refresh(vh)
    return _to_response(vh)


async def deactivate_vote_head(
    db: AsyncSession,
    tenant_id: UUID,
    vote_head_id: UUID,
) -> Optional[VoteHeadResponse]:
    """Soft delete. Existing balances and allocations on the vote head are kept."""
    vh = await _get_vote_head(db, tenant_id, vote_head_id)
    if not vh:
        return None
    vh.is_active = False
    await db.commit()
    await db.refresh(vh)
    return _to_response(vh)


async def reorder_vote_heads(
    db: AsyncSession,
    tenant_id: UUID,
    payload: VoteHeadReorderRequest,
) -> List[VoteHeadResponse]:
    for item in payload.order:
        await db.execute(
            update(VoteHead)
            .where(VoteHead.id == item.id, VoteHead.tenant_id == tenant_id)
            .values(priority=item.priority)
        )
    await db.commit()
    return await list_vote_heads(db, tenant_id)
