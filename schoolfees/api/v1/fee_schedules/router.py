"""Fee schedules router: per-class schedules and vote head items."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.auth.rbac import require_roles
from schoolfees.auth.schemas import CurrentUser
from schoolfees.core.exceptions import ServiceError
from schoolfees.db.session import get_db

from .schemas import FeeScheduleCreate, FeeScheduleItemCreate, FeeScheduleItemResponse, FeeScheduleResponse
from . import service

router = APIRouter(prefix="/api/v1/fee-schedules", tags=["fee-schedules"])

_fee_managers = require_roles("SCHOOL_ADMIN", "FINANCE")


@router.post(
    "",
    response_model=FeeScheduleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_fee_schedule(
    payload: FeeScheduleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(_fee_managers),
) -> FeeScheduleResponse:
    try:
        return await service.create_fee_schedule(db, current_user.tenant_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[FeeScheduleResponse])
async def list_fee_schedules(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(_fee_managers),
) -> List[FeeScheduleResponse]:
    return await service.list_fee_schedules(db, current_user.tenant_id, class_id)


@router.post(
    "/{fee_schedule_id}/items",
    response_model=FeeScheduleItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_fee_schedule_item(
    fee_schedule_id: UUID,
    payload: FeeScheduleItemCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(_fee_managers),
) -> FeeScheduleItemResponse:
    try:
        return await service.add_fee_schedule_item(db, current_user.tenant_id, fee_schedule_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{fee_schedule_id}/items", response_model=List[FeeScheduleItemResponse])
async def list_fee_schedule_items(
    fee_schedule_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(_fee_managers),
) -> List[FeeScheduleItemResponse]:
    try:
        return await service.list_fee_schedule_items(db, current_user.tenant_id, fee_schedule_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
