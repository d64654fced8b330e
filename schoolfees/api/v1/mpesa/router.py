"""
M-PESA router.

/c2b/* are called by Safaricom without credentials and always answer HTTP 200
with a ResultCode/ResultDesc body. The rest is for school finance staff.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.api.v1.fees import service as fees_service
from schoolfees.auth.rbac import require_roles
from schoolfees.auth.schemas import CurrentUser
from schoolfees.core.exceptions import ServiceError
from schoolfees.db.session import get_db

from .schemas import (
    C2BAck,
    C2BNotification,
    C2BRegisterResponse,
    ManualMatchRequest,
    ManualMatchResponse,
    MpesaTransactionResponse,
)
from . import service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/mpesa", tags=["mpesa"])

_fee_managers = require_roles("SCHOOL_ADMIN", "FINANCE")


async def _parse_notification(request: Request) -> Optional[C2BNotification]:
    try:
        return C2BNotification.model_validate(await request.json())
    except (ValueError, ValidationError):
        return None


# --- Safaricom callbacks ---
@router.post("/c2b/validation", response_model=C2BAck)
async def c2b_validation(request: Request, db: AsyncSession = Depends(get_db)) -> C2BAck:
    notification = await _parse_notification(request)
    if notification is None:
        return C2BAck(result_code=service.REJECTED, result_desc="Invalid request format")
    try:
        return await service.validate_c2b(db, notification)
    except Exception:
        logger.exception("M-PESA validation failed", extra={"trans_id": notification.trans_id})
        return C2BAck(result_code=service.REJECTED, result_desc="Validation error")


@router.post("/c2b/confirmation", response_model=C2BAck)
async def c2b_confirmation(request: Request, db: AsyncSession = Depends(get_db)) -> C2BAck:
    notification = await _parse_notification(request)
    if notification is None:
        return C2BAck(result_code=service.REJECTED, result_desc="Invalid request format")
    try:
        return await service.ingest_c2b_confirmation(db, notification)
    except Exception:
        # Post-capture confirmations cannot be rejected; acknowledge and leave it to the logs
        logger.exception("M-PESA confirmation failed", extra={"trans_id": notification.trans_id})
        return C2BAck(result_code=service.ACCEPTED, result_desc="Error logged")


# --- Finance staff ---
@router.get("/transactions", response_model=List[MpesaTransactionResponse])
async def list_transactions(
    status: Optional[str] = Query(None, description="PENDING, MATCHED, UNMATCHED, FAILED"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(_fee_managers),
) -> List[MpesaTransactionResponse]:
    return await service.list_transactions(db, current_user.tenant_id, status_filter=status)


@router.post("/transactions/{transaction_id}/match", response_model=ManualMatchResponse)
async def manual_match_transaction(
    transaction_id: UUID,
    payload: ManualMatchRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(_fee_managers),
) -> ManualMatchResponse:
    try:
        payment, allocations = await service.manual_match(
            db,
            current_user.tenant_id,
            transaction_id,
            payload.student_id,
            matched_by=current_user.id,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ManualMatchResponse(
        message="Transaction matched and payment created",
        payment=fees_service.payment_to_response(payment),
        allocations=[fees_service.allocation_to_response(a) for a in allocations],
    )


@router.post("/c2b/register", response_model=C2BRegisterResponse)
async def register_c2b_urls(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("SCHOOL_ADMIN")),
) -> C2BRegisterResponse:
    try:
        return await service.register_c2b_urls(db, current_user.tenant_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
