"""Vote heads router: CRUD and priority reordering."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.auth.rbac import require_roles
from schoolfees.auth.schemas import CurrentUser
from schoolfees.db.session import get_db

from .schemas import VoteHeadCreate, VoteHeadReorderRequest, VoteHeadResponse, VoteHeadUpdate
from . import service

router = APIRouter(prefix="/api/v1/vote-heads", tags=["vote-heads"])

_fee_managers = require_roles("SCHOOL_ADMIN", "FINANCE")


@router.post(
    "",
    response_model=VoteHeadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_vote_head(
    payload: VoteHeadCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(_fee_managers),
) -> VoteHeadResponse:
    return await service.create_vote_head(db, current_user.tenant_id, payload)


@router.get("", response_model=List[VoteHeadResponse])
async def list_vote_heads(
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(_fee_managers),
) -> List[VoteHeadResponse]:
    return await service.list_vote_heads(db, current_user.tenant_id, active_only=active_only)


@router.put("/reorder", response_model=List[VoteHeadResponse])
async def reorder_vote_heads(
    payload: VoteHeadReorderRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(_fee_managers),
) -> List[VoteHeadResponse]:
    return await service.reorder_vote_heads(db, current_user.tenant_id, payload)


@router.put("/{vote_head_id}", response_model=VoteHeadResponse)
async def update_vote_head(
    vote_head_id: UUID,
    payload: VoteHeadUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(_fee_managers),
) -> VoteHeadResponse:
    result = await service.update_vote_head(db, current_user.tenant_id, vote_head_id, payload)
    if not result:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vote head not found")
    return result


@router.delete("/{vote_head_id}", response_model=VoteHeadResponse)
async def delete_vote_head(
    vote_head_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(_fee_managers),
) -> VoteHeadResponse:
    result = await service.deactivate_vote_head(db, current_user.tenant_id, vote_head_id)
    if not result:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vote head not found")
    return result
