"""M-PESA C2B transaction log. One row per Safaricom TransID."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from schoolfees.core.enums import MpesaTransactionStatus
from schoolfees.db.session import Base


class MpesaTransaction(Base):
    """
    Inbound C2B confirmation. trans_id is unique: a repeated notification hits the
    constraint and is treated as already processed. tenant_id is null when the
    BusinessShortCode does not belong to any school.
    """

    __tablename__ = "mpesa_transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True, index=True)
    transaction_type = Column(String(30), nullable=True)
    trans_id = Column(String(50), nullable=False, unique=True)
    trans_time = Column(String(20), nullable=True)
    trans_amount = Column(Numeric(12, 2), nullable=False)
    business_short_code = Column(String(20), nullable=True)
    bill_ref_number = Column(String(100), nullable=True, index=True)  # student admission number
    invoice_number = Column(String(100), nullable=True)
    org_account_balance = Column(Numeric(14, 2), nullable=True)
    third_party_trans_id = Column(String(100), nullable=True)
    msisdn = Column(String(20), nullable=True)
    first_name = Column(String(100), nullable=True)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default=MpesaTransactionStatus.PENDING.value)
    payment_id = Column(Uuid, ForeignKey("payments.id", ondelete="SET NULL"), nullable=True)
    matched_student_id = Column(Uuid, ForeignKey("students.id", ondelete="SET NULL"), nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    payment = relationship("Payment")
    matched_student = relationship("Student")
