"""Per-student running balance per vote head."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, Uuid
from sqlalchemy.orm import relationship

from schoolfees.db.session import Base


class VoteHeadBalance(Base):
    """
    Outstanding amount a student owes on one vote head. Positive = owes,
    negative = credit carried forward. Only the allocation engine mutates it.
    """

    __tablename__ = "vote_head_balances"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    vote_head_id = Column(Uuid, ForeignKey("vote_heads.id", ondelete="RESTRICT"), nullable=False, index=True)
    balance = Column(Numeric(12, 2), nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student = relationship("Student")
    vote_head = relationship("VoteHead")
