"""
M-PESA C2B reconciliation.

Confirmations are logged once per TransID (unique constraint). A matched
confirmation creates the Payment and the MATCHED transaction row in one commit;
vote head allocation then runs in its own transaction so an allocation failure
never loses the payment. Unmatched confirmations wait for a manual match.
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import status
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.api.v1.fees.allocation import allocate, lock_student, to_decimal
from schoolfees.core.enums import MpesaTransactionStatus, PaymentMethod
from schoolfees.core.exceptions import AlreadyMatchedError, ServiceError, StorageError
from schoolfees.core.models import MpesaTransaction, Payment, PaymentAllocation, Student, Tenant
from schoolfees.integrations.daraja import DarajaClient, DarajaError

from .schemas import C2BAck, C2BNotification, C2BRegisterResponse, MpesaTransactionResponse

logger = logging.getLogger(__name__)

ACCEPTED = 0
REJECTED = 1


def _ack(code: int, desc: str) -> C2BAck:
    return C2BAck(result_code=code, result_desc=desc)


def _log_extra(n: C2BNotification) -> dict:
    return {"trans_id": n.trans_id, "amount": str(n.trans_amount), "bill_ref": n.bill_ref_number}


async def _resolve_tenant(db: AsyncSession, short_code: Optional[str]) -> Optional[Tenant]:
    if not short_code:
        return None
    return (
        await db.execute(select(Tenant).where(Tenant.mpesa_shortcode == short_code.strip()))
    ).scalar_one_or_none()


async def _find_student(db: AsyncSession, tenant_id: UUID, bill_ref: str) -> Optional[Student]:
    if not bill_ref:
        return None
    return (
        await db.execute(
            select(Student).where(
                Student.tenant_id == tenant_id,
                Student.enrollment_number == bill_ref,
            )
        )
    ).scalar_one_or_none()


async def _match_student(db: AsyncSession, n: C2BNotification) -> Tuple[Optional[UUID], Optional[Student]]:
    tenant = await _resolve_tenant(db, n.business_short_code)
    if not tenant:
        return None, None
    return tenant.id, await _find_student(db, tenant.id, n.bill_ref_number)


async def _is_logged(db: AsyncSession, trans_id: str) -> bool:
    found = (
        await db.execute(select(MpesaTransaction.id).where(MpesaTransaction.trans_id == trans_id))
    ).scalar_one_or_none()
    return found is not None


def _transaction_from(n: C2BNotification, tenant_id: Optional[UUID]) -> MpesaTransaction:
    return MpesaTransaction(
        tenant_id=tenant_id,
        transaction_type=n.transaction_type,
        trans_id=n.trans_id,
        trans_time=n.trans_time,
        trans_amount=n.trans_amount,
        business_short_code=n.business_short_code,
        bill_ref_number=n.bill_ref_number,
        invoice_number=n.invoice_number,
        org_account_balance=n.org_account_balance,
        third_party_trans_id=n.third_party_trans_id,
        msisdn=n.msisdn,
        first_name=n.first_name,
        middle_name=n.middle_name,
        last_name=n.last_name,
        status=MpesaTransactionStatus.PENDING.value,
    )


async def _log_failed(db: AsyncSession, n: C2BNotification, tenant_id: Optional[UUID], error: str) -> None:
    tx = _transaction_from(n, tenant_id)
    tx.status = MpesaTransactionStatus.FAILED.value
    tx.error_message = error
    db.add(tx)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Could not record failed M-PESA transaction", extra=_log_extra(n))


async def validate_c2b(db: AsyncSession, n: C2BNotification) -> C2BAck:
    """Pre-capture check: accept only when the account reference is a known student. No writes."""
    logger.info("M-PESA validation", extra=_log_extra(n))
    _, student = await _match_student(db, n)
    if not student:
        return _ack(REJECTED, f"Student with admission number {n.bill_ref_number} not found")
    return _ack(ACCEPTED, "Accepted")


async def ingest_c2b_confirmation(db: AsyncSession, n: C2BNotification) -> C2BAck:
    """Log a captured payment and allocate it. Always returns an accepting acknowledgment."""
    logger.info("M-PESA confirmation", extra=_log_extra(n))

    if await _is_logged(db, n.trans_id):
        logger.info("Duplicate M-PESA confirmation", extra=_log_extra(n))
        return _ack(ACCEPTED, "Already processed")

    tenant_id, student = await _match_student(db, n)
    tx = _transaction_from(n, tenant_id)
    payment: Optional[Payment] = None
    try:
        if student:
            payment = Payment(
                tenant_id=student.tenant_id,
                student_id=student.id,
                amount=to_decimal(n.trans_amount),
                method=PaymentMethod.MPESA.value,
                reference=n.trans_id,
            )
            db.add(payment)
            await db.flush()
            tx.status = MpesaTransactionStatus.MATCHED.value
            tx.payment_id = payment.id
            tx.matched_student_id = student.id
        else:
            tx.status = MpesaTransactionStatus.UNMATCHED.value
            tx.error_message = "Student not found by admission number"
        db.add(tx)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        if await _is_logged(db, n.trans_id):
            logger.info("Duplicate M-PESA confirmation (concurrent)", extra=_log_extra(n))
            return _ack(ACCEPTED, "Already processed")
        logger.exception("Failed to create payment record for M-PESA transaction", extra=_log_extra(n))
        await _log_failed(db, n, tenant_id, "Failed to create payment record")
        return _ack(ACCEPTED, "Error logged")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to create payment record for M-PESA transaction", extra=_log_extra(n))
        await _log_failed(db, n, tenant_id, "Failed to create payment record")
        return _ack(ACCEPTED, "Error logged")

    if payment is None:
        logger.warning("Unmatched M-PESA transaction logged for manual matching", extra=_log_extra(n))
        return _ack(ACCEPTED, "Logged for manual matching")

    await _allocate_confirmed_payment(db, payment, tx.id, n)
    return _ack(ACCEPTED, "Success")


async def _allocate_confirmed_payment(
    db: AsyncSession,
    payment: Payment,
    transaction_id: UUID,
    n: C2BNotification,
) -> None:
    """Allocation failures are recorded on the transaction and left for an operator."""
    try:
        allocations = await allocate(db, payment, payment.student_id, payment.tenant_id)
        await db.commit()
    except (ServiceError, SQLAlchemyError) as exc:
        await db.rollback()
        reason = exc.message if isinstance(exc, ServiceError) else str(exc)
        logger.warning("Vote head allocation failed for M-PESA payment", extra={**_log_extra(n), "reason": reason})
        await db.execute(
            update(MpesaTransaction)
            .where(MpesaTransaction.id == transaction_id)
            .values(error_message=f"Allocation failed: {reason}")
        )
        await db.commit()
        return
    logger.info("M-PESA payment allocated", extra={**_log_extra(n), "allocations": len(allocations)})


async def manual_match(
    db: AsyncSession,
    tenant_id: UUID,
    transaction_id: UUID,
    student_id: UUID,
    matched_by: Optional[UUID] = None,
) -> Tuple[Payment, List[PaymentAllocation]]:
    """
    Attach a non-matched transaction to a student: payment, allocation and the
    MATCHED transition commit together. Allocation errors propagate and leave
    the transaction unmatched.
    """
    try:
        tx = (
            await db.execute(
                select(MpesaTransaction)
                .where(MpesaTransaction.id == transaction_id, MpesaTransaction.tenant_id == tenant_id)
                .with_for_update()
            )
        ).scalar_one_or_none()
        if not tx:
            raise ServiceError("Transaction not found", status.HTTP_404_NOT_FOUND)
        if tx.status == MpesaTransactionStatus.MATCHED.value:
            raise AlreadyMatchedError()
        await lock_student(db, student_id, tenant_id)
        payment = Payment(
            tenant_id=tenant_id,
            student_id=student_id,
            amount=to_decimal(tx.trans_amount),
            method=PaymentMethod.MPESA.value,
            reference=tx.trans_id,
            recorded_by=matched_by,
        )
        db.add(payment)
        await db.flush()
        allocations = await allocate(db, payment, student_id, tenant_id)
        tx.status = MpesaTransactionStatus.MATCHED.value
        tx.payment_id = payment.id
        tx.matched_student_id = student_id
        tx.error_message = None
        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StorageError("Failed to match transaction") from exc
    logger.info(
        "M-PESA transaction matched manually",
        extra={"transaction_id": str(transaction_id), "student_id": str(student_id)},
    )
    return payment, allocations


async def list_transactions(
    db: AsyncSession,
    tenant_id: UUID,
    status_filter: Optional[str] = None,
    limit: int = 100,
) -> List[MpesaTransactionResponse]:
    stmt = select(MpesaTransaction).where(MpesaTransaction.tenant_id == tenant_id)
    if status_filter:
        stmt = stmt.where(MpesaTransaction.status == status_filter.strip().upper())
    stmt = stmt.order_by(MpesaTransaction.created_at.desc()).limit(limit)
    result = await db.execute(stmt)
    return [MpesaTransactionResponse.model_validate(tx) for tx in result.scalars().all()]


async def register_c2b_urls(
    db: AsyncSession,
    tenant_id: UUID,
    client: Optional[DarajaClient] = None,
) -> C2BRegisterResponse:
    tenant = await db.get(Tenant, tenant_id)
    if not tenant or not tenant.mpesa_shortcode:
        raise ServiceError("School has no M-PESA shortcode configured", status.HTTP_400_BAD_REQUEST)
    short_code = tenant.mpesa_shortcode
    # Release the read transaction before calling out
    await db.rollback()
    client = client or DarajaClient.from_settings()
    try:
        data = await client.register_c2b_urls(short_code)
    except DarajaError as e:
        raise ServiceError(str(e), status.HTTP_502_BAD_GATEWAY)
    return C2BRegisterResponse(short_code=short_code, daraja_response=data)
