"""Fee schedule per class and academic period, broken down into vote head items."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from schoolfees.db.session import Base


class FeeSchedule(Base):
    """
    Total fee for a class in an academic period. Item amounts are not required
    to add up to amount.
    """

    __tablename__ = "fee_schedules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    academic_period = Column(String(50), nullable=False)  # e.g. 2025, 2025-T1
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant")
    school_class = relationship("SchoolClass", foreign_keys=[class_id])
    items = relationship("FeeScheduleItem", back_populates="fee_schedule", cascade="all, delete-orphan")


class FeeScheduleItem(Base):
    """Portion of a fee schedule assigned to one vote head."""

    __tablename__ = "fee_schedule_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    fee_schedule_id = Column(Uuid, ForeignKey("fee_schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    vote_head_id = Column(Uuid, ForeignKey("vote_heads.id", ondelete="RESTRICT"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    fee_schedule = relationship("FeeSchedule", back_populates="items")
    vote_head = relationship("VoteHead")
