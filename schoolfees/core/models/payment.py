"""Payments received and their per-vote-head allocation trail. Append-only."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from schoolfees.db.session import Base


class Payment(Base):
    """Money received for a student. Never mutated after creation."""

    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="RESTRICT"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String(20), nullable=False)  # CASH, BANK, MPESA
    reference = Column(String(100), nullable=True)
    recorded_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student = relationship("Student")
    allocations = relationship("PaymentAllocation", back_populates="payment")


class PaymentAllocation(Base):
    """Amount of a payment applied to one vote head, with the balance before and after."""

    __tablename__ = "payment_allocations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    payment_id = Column(Uuid, ForeignKey("payments.id", ondelete="RESTRICT"), nullable=False, index=True)
    vote_head_id = Column(Uuid, ForeignKey("vote_heads.id", ondelete="RESTRICT"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    balance_before = Column(Numeric(12, 2), nullable=False)
    balance_after = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    payment = relationship("Payment", back_populates="allocations")
    vote_head = relationship("VoteHead")
